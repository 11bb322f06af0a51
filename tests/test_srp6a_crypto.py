#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import unittest

from authn.Errors import InvalidParameterError, ValidationError
from authn.crypto.Srp6aClient import Srp6aClient
from authn.crypto.Srp6aCrypto import Srp6aCrypto, canonical_hex, from_hex, to_hex
from utils.ConfigLoader import ConfigLoader

# GLOBALS
config = ConfigLoader.get_config()


class TestHexHelpers(unittest.TestCase):
    """Canonical hex encoding used for storage and hashing."""

    def test_to_hex_pads_to_even_length(self) -> None:
        self.assertEqual(to_hex(0), "00")
        self.assertEqual(to_hex(255), "ff")
        self.assertEqual(to_hex(256), "0100")

    def test_to_hex_rejects_negative(self) -> None:
        with self.assertRaises(ValueError):
            to_hex(-1)

    def test_from_hex_accepts_prefix_and_case(self) -> None:
        self.assertEqual(from_hex("0xFF"), 255)
        self.assertEqual(from_hex("0Xff"), 255)
        self.assertEqual(from_hex("00ff"), 255)

    def test_from_hex_rejects_garbage(self) -> None:
        for bad in ("", "0x", "zz", "-1", "1_0", "12 34"):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    from_hex(bad)

        with self.assertRaises(ValidationError):
            from_hex(12)

    def test_canonical_hex(self) -> None:
        self.assertEqual(canonical_hex("0xABC"), "0abc")
        self.assertEqual(canonical_hex("0000ff"), "ff")


class TestSrp6aCryptoConstruction(unittest.TestCase):

    def test_small_safe_prime_is_accepted(self) -> None:
        crypto = Srp6aCrypto(23, 5)
        self.assertEqual(crypto.N, 23)
        self.assertEqual(crypto.g, 5)

    def test_hex_parameters(self) -> None:
        crypto = Srp6aCrypto("0x17", "5")
        self.assertEqual(crypto.N, 23)

    def test_prime_that_is_not_safe_fails(self) -> None:
        """13 is prime but (13-1)/2 = 6 is not."""
        with self.assertRaises(InvalidParameterError):
            Srp6aCrypto(13, 2)

    def test_composite_modulus_fails(self) -> None:
        with self.assertRaises(InvalidParameterError):
            Srp6aCrypto(15, 2)

    def test_generator_out_of_range_fails(self) -> None:
        for g in (0, 1, 22, 23):
            with self.subTest(g=g):
                with self.assertRaises(InvalidParameterError):
                    Srp6aCrypto(23, g)

    def test_unparseable_parameters_fail(self) -> None:
        with self.assertRaises(InvalidParameterError):
            Srp6aCrypto("not-hex", "2")
        with self.assertRaises(InvalidParameterError):
            Srp6aCrypto("17", "g")

    def test_configured_group(self) -> None:
        crypto = Srp6aCrypto.from_config()
        self.assertEqual(crypto.N.bit_length(), 1024)
        self.assertEqual(crypto.g, 2)


class TestSrp6aCryptoMath(unittest.TestCase):

    @classmethod
    def setUpClass(cls) -> None:
        cls.crypto = Srp6aCrypto(config["crypto"]["N"], config["crypto"]["g"])
        cls.small = Srp6aCrypto(23, 5)

    # -------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------

    def test_hash_concatenates_hex_operands(self) -> None:
        self.assertEqual(self.crypto.hash(1, 255), self.crypto.hash("01ff"))
        self.assertEqual(self.crypto.hash("a", "b"), self.crypto.hash("ab"))

    def test_hash_is_sha512(self) -> None:
        self.assertLess(self.crypto.hash("abc"), 1 << 512)
        self.assertGreater(self.crypto.hash("abc").bit_length(), 400)

    def test_multiplier_parameter(self) -> None:
        self.assertEqual(
            self.crypto.calc_multiplier_parameter(),
            self.crypto.hash(self.crypto.N, self.crypto.g),
        )

    # -------------------------------------------------------------
    # Private key reduction
    # -------------------------------------------------------------

    def test_private_key_below_modulus_is_kept(self) -> None:
        """A 512-bit hash is always below a 1024-bit N."""
        salt = 0x1234
        expected = self.crypto.hash(salt, self.crypto.hash("root:pw1"))
        self.assertEqual(self.crypto.calc_private_key(salt, "root", "pw1"), expected)

    def test_private_key_reduced_mod_n_minus_one(self) -> None:
        salt = 0x1234
        raw = self.small.hash(salt, self.small.hash("root:pw1"))
        self.assertEqual(self.small.calc_private_key(salt, "root", "pw1"), raw % 22)

    def test_salt_and_secret_sizes(self) -> None:
        self.assertLess(self.crypto.generate_salt(), 1 << 64)
        self.assertLess(self.crypto.generate_secret_ephemeral_value(), 1 << 256)

    # -------------------------------------------------------------
    # Public value validation
    # -------------------------------------------------------------

    def test_validate_public_ephemeral_value(self) -> None:
        N = self.crypto.N
        for value in (0, N, 2 * N):
            with self.subTest(value=value):
                self.assertFalse(self.crypto.validate_public_ephemeral_value(value))
        self.assertTrue(self.crypto.validate_public_ephemeral_value(1))
        self.assertTrue(self.crypto.validate_public_ephemeral_value(N + 1))

    # -------------------------------------------------------------
    # Key agreement
    # -------------------------------------------------------------

    def test_client_and_server_agree_on_key(self) -> None:
        crypto = self.crypto
        salt = crypto.generate_salt()
        verifier = crypto.calc_password_verifier(crypto.calc_private_key(salt, "root", "pw1"))

        client = Srp6aClient(crypto, "root", "pw1")
        public_a = from_hex(client.start_authentication())

        secret_b = crypto.generate_secret_ephemeral_value()
        public_b = crypto.calc_public_ephemeral_value_b(verifier, secret_b)

        m1 = client.process_challenge(to_hex(salt), to_hex(public_b))

        u = crypto.calc_random_scrambling_parameter(public_a, public_b)
        server_key = crypto.calc_key(crypto.calc_server_session_key(public_a, verifier, u, secret_b))
        self.assertEqual(server_key, client.session_key)

        expected_m1 = crypto.calc_client_key_match("root", salt, public_a, public_b, server_key)
        self.assertEqual(from_hex(m1), expected_m1)

        m2 = crypto.calc_server_key_match(public_a, expected_m1, server_key)
        self.assertTrue(client.verify_session(to_hex(m2)))
        self.assertTrue(client.authenticated())

    def test_wrong_password_gives_different_key(self) -> None:
        crypto = self.crypto
        salt = crypto.generate_salt()
        verifier = crypto.calc_password_verifier(crypto.calc_private_key(salt, "root", "pw1"))

        client = Srp6aClient(crypto, "root", "pw2")
        public_a = from_hex(client.start_authentication())
        secret_b = crypto.generate_secret_ephemeral_value()
        public_b = crypto.calc_public_ephemeral_value_b(verifier, secret_b)
        client.process_challenge(to_hex(salt), to_hex(public_b))

        u = crypto.calc_random_scrambling_parameter(public_a, public_b)
        server_key = crypto.calc_key(crypto.calc_server_session_key(public_a, verifier, u, secret_b))
        self.assertNotEqual(server_key, client.session_key)

    def test_client_rejects_degenerate_b(self) -> None:
        client = Srp6aClient(self.crypto, "root", "pw1")
        client.start_authentication()
        with self.assertRaises(ValidationError):
            client.process_challenge("01", to_hex(self.crypto.N))

    def test_client_verify_before_challenge(self) -> None:
        client = Srp6aClient(self.crypto, "root", "pw1")
        self.assertIsNone(client.expected_server_proof())
        self.assertFalse(client.verify_session("00"))
        self.assertFalse(client.verify_session(None))
        self.assertFalse(client.authenticated())


if __name__ == "__main__":
    unittest.main()
