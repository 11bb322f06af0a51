#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import hashlib
import re
import secrets

from Crypto.Util.number import isPrime

from authn.Errors import InvalidParameterError, ValidationError
from utils.ConfigLoader import ConfigLoader

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


def to_hex(value: int) -> str:
    """
    Lowercase hex without prefix, left-padded to an even digit count.

    Every integer that takes part in a hash goes through here so that
    concatenated operands cannot shift across their boundaries.
    """
    if value < 0:
        raise ValueError("SRP6a values are non-negative")
    text = format(value, "x")
    if len(text) % 2:
        text = "0" + text
    return text


def from_hex(text: str) -> int:
    """Parse a hex string (optional 0x prefix, any case)."""
    if not isinstance(text, str):
        raise ValidationError(f"Expected a hex string, got {type(text).__name__}")
    stripped = text.strip()
    if stripped[:2].lower() == "0x":
        stripped = stripped[2:]
    if not _HEX_DIGITS.fullmatch(stripped):
        raise ValidationError(f"Invalid hex value: {text!r}")
    return int(stripped, 16)


def canonical_hex(text: str) -> str:
    """Re-encode a hex string in the canonical stored form."""
    return to_hex(from_hex(text))


class Srp6aCrypto:
    """
    SRP-6a group arithmetic and hash derivations for one (N, g) pair.

    The class is stateless apart from N and g; every handshake value is
    passed in and returned as a plain int. Hashing is SHA-512 over the
    UTF-8 concatenation of the operands, integers rendered with to_hex().

    The class provides:
        * Salt, private key and verifier generation
        * Client and server ephemeral values (a/A, b/B)
        * Scrambling parameter u, session keys S and K
        * Key-match proofs M1 and M2
    """

    SALT_BYTES: int = 8
    RAND_BYTES: int = 32
    HASH_ALGO: str = "sha512"

    def __init__(self, safe_prime: str | int, generator: str | int) -> None:
        """
        Args:
            safe_prime: N in hex (0x prefix optional) or as an int.
            generator: g in hex or as an int.

        Raises:
            InvalidParameterError: N or (N-1)/2 is not prime, or g is
                not a usable generator for N.
        """
        try:
            modulus = safe_prime if isinstance(safe_prime, int) else from_hex(safe_prime)
            gen = generator if isinstance(generator, int) else from_hex(generator)
        except ValidationError as e:
            raise InvalidParameterError(str(e))

        if modulus < 5 or not isPrime(modulus):
            raise InvalidParameterError(f"{modulus:#x} is not prime")
        if not isPrime((modulus - 1) // 2):
            raise InvalidParameterError(f"({modulus:#x}-1)/2 is not prime")
        if not 2 <= gen <= modulus - 2:
            raise InvalidParameterError(f"generator {gen} is out of range for N")

        self._modulus_int = modulus
        self._generator_int = gen

    @classmethod
    def from_config(cls) -> "Srp6aCrypto":
        crypto = ConfigLoader.get_config()["crypto"]
        return cls(str(crypto["N"]), str(crypto["g"]))

    @property
    def N(self) -> int:
        return self._modulus_int

    @property
    def g(self) -> int:
        return self._generator_int

    # ======================================================================
    # Hash helpers
    # ======================================================================

    def hash(self, *parts: str | int) -> int:
        """
        H(p1 || p2 || ...) read as an integer.

        str parts are hashed verbatim (usernames, passwords); int parts are
        rendered with to_hex() first.
        """
        sha = hashlib.new(self.HASH_ALGO)
        for part in parts:
            if isinstance(part, int):
                part = to_hex(part)
            sha.update(part.encode("utf-8"))
        return int(sha.hexdigest(), 16)

    def _generator_pow(self, exponent: int) -> int:
        return pow(self._generator_int, exponent, self._modulus_int)

    def calc_multiplier_parameter(self) -> int:
        """k = H(N, g)"""
        return self.hash(self._modulus_int, self._generator_int)

    # ======================================================================
    # Account generation
    # ======================================================================

    def generate_salt(self) -> int:
        """Random 8-byte salt s."""
        return int.from_bytes(secrets.token_bytes(self.SALT_BYTES), "big")

    def calc_private_key(self, salt: int, username: str, password: str) -> int:
        """
        x = H(s || H(username ":" password))

        Values not below N are reduced mod (N-1), not mod N. Stored
        verifiers were derived this way and must stay verifiable.
        """
        x = self.hash(salt, self.hash(f"{username}:{password}"))
        if x < self._modulus_int:
            return x
        return x % (self._modulus_int - 1)

    def calc_password_verifier(self, private_key: int) -> int:
        """v = g^x mod N"""
        return self._generator_pow(private_key)

    # ======================================================================
    # Ephemeral values
    # ======================================================================

    def generate_secret_ephemeral_value(self) -> int:
        """Random 32-byte secret exponent (client a or server b)."""
        return int.from_bytes(secrets.token_bytes(self.RAND_BYTES), "big")

    def calc_public_ephemeral_value_a(self, secret_a: int) -> int:
        """A = g^a mod N"""
        return self._generator_pow(secret_a)

    def calc_public_ephemeral_value_b(self, verifier: int, secret_b: int) -> int:
        """B = (k*v + g^b) mod N"""
        k = self.calc_multiplier_parameter()
        return (k * verifier + self._generator_pow(secret_b)) % self._modulus_int

    def validate_public_ephemeral_value(self, value: int) -> bool:
        """A public ephemeral value is usable only if it is not 0 mod N."""
        return value % self._modulus_int != 0

    # ======================================================================
    # Handshake math: u, S, K
    # ======================================================================

    def calc_random_scrambling_parameter(self, public_a: int, public_b: int) -> int:
        """u = H(A, B)"""
        return self.hash(public_a, public_b)

    def calc_client_session_key(
        self,
        public_b: int,
        private_key: int,
        secret_a: int,
        scrambler: int,
    ) -> int:
        """S = (B - k*g^x)^(a + u*x) mod N"""
        k = self.calc_multiplier_parameter()
        base = (public_b - k * self._generator_pow(private_key)) % self._modulus_int
        return pow(base, secret_a + scrambler * private_key, self._modulus_int)

    def calc_server_session_key(
        self,
        public_a: int,
        verifier: int,
        scrambler: int,
        secret_b: int,
    ) -> int:
        """S = (A * v^u)^b mod N"""
        N = self._modulus_int
        base = (public_a * pow(verifier, scrambler, N)) % N
        return pow(base, secret_b, N)

    def calc_key(self, session_key: int) -> int:
        """K = H(S)"""
        return self.hash(session_key)

    # ======================================================================
    # Proof values M1 and M2
    # ======================================================================

    def calc_client_key_match(
        self,
        username: str,
        salt: int,
        public_a: int,
        public_b: int,
        key: int,
    ) -> int:
        """M1 = H(H(N) xor H(g), H(I), s, A, B, K)"""
        xor_ng = self.hash(self._modulus_int) ^ self.hash(self._generator_int)
        return self.hash(xor_ng, self.hash(username), salt, public_a, public_b, key)

    def calc_server_key_match(self, public_a: int, client_proof: int, key: int) -> int:
        """M2 = H(A, M1, K)"""
        return self.hash(public_a, client_proof, key)
