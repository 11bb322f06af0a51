#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Srp6aClient - client side of an SRP-6a handshake.

Purpose
-------
Mirrors what a remote client does against Srp6aAuth: pick a secret a,
send A, turn the server's (salt, B) into the proof M1 and finally check
the server proof M2. The server uses it for the in-process fallback
round; tests and tools use it as the reference client.

Every value crossing the wire is canonical hex (see to_hex()).
"""

import hmac

from authn.Errors import ValidationError
from authn.crypto.Srp6aCrypto import Srp6aCrypto, from_hex, to_hex


class Srp6aClient:
    """
    Client handshake state for one (username, password) attempt.

    Responsibilities
    ----------------
    * Compute A = g^a mod N
    * Derive the shared session key S and K = H(S)
    * Compute the proof M1 sent to the server
    * Check the server proof M2
    """

    def __init__(self, crypto: Srp6aCrypto, username: str, password: str) -> None:
        self.crypto = crypto
        self.username = username
        self._password = password

        self._secret_a = crypto.generate_secret_ephemeral_value()
        self.public_a: int | None = None
        self.public_b: int | None = None
        self.salt: int | None = None

        self._key: int | None = None
        self._client_proof: int | None = None
        self._is_auth = False

    def start_authentication(self) -> str:
        """Returns A as hex, the first message to the server."""
        self.public_a = self.crypto.calc_public_ephemeral_value_a(self._secret_a)
        return to_hex(self.public_a)

    def process_challenge(self, salt_hex: str, public_b_hex: str) -> str:
        """
        Derive K from the server challenge and return M1 as hex.

        Raises:
            ValidationError: B is 0 mod N, or a value is not hex.
        """
        if self.public_a is None:
            self.start_authentication()

        self.salt = from_hex(salt_hex)
        self.public_b = from_hex(public_b_hex)
        if not self.crypto.validate_public_ephemeral_value(self.public_b):
            raise ValidationError("Invalid Public Ephemeral Value B.")

        u = self.crypto.calc_random_scrambling_parameter(self.public_a, self.public_b)
        x = self.crypto.calc_private_key(self.salt, self.username, self._password)
        session_key = self.crypto.calc_client_session_key(self.public_b, x, self._secret_a, u)
        self._key = self.crypto.calc_key(session_key)

        self._client_proof = self.crypto.calc_client_key_match(
            self.username, self.salt, self.public_a, self.public_b, self._key
        )
        return to_hex(self._client_proof)

    def expected_server_proof(self) -> str | None:
        """M2 the server must answer with, or None before process_challenge()."""
        if self._client_proof is None or self._key is None:
            return None
        m2 = self.crypto.calc_server_key_match(self.public_a, self._client_proof, self._key)
        return to_hex(m2)

    def verify_session(self, server_proof_hex: str | None) -> bool:
        expected = self.expected_server_proof()
        if server_proof_hex is None or expected is None:
            return False
        try:
            received = to_hex(from_hex(server_proof_hex))
        except ValidationError:
            return False
        self._is_auth = hmac.compare_digest(received, expected)
        return self._is_auth

    def authenticated(self) -> bool:
        return self._is_auth

    @property
    def session_key(self) -> int | None:
        """K = H(S) once the challenge has been processed."""
        return self._key
