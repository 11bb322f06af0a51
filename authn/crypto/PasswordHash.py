#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import re
from abc import ABC, abstractmethod

import bcrypt

from utils.ConfigLoader import ConfigLoader


class PasswordHash(ABC):
    """
    Interface for the simple scheme's password hashing.

    Implementations must produce self-describing encodings (salt and cost
    embedded) so that is_hash() can tell a stored hash from a plaintext.
    """

    @abstractmethod
    def hash(self, password: str) -> str:
        """Encode a plaintext password."""

    @abstractmethod
    def verify(self, password: str, encoded: str) -> bool:
        """True if password matches the stored encoding."""

    @abstractmethod
    def is_hash(self, value: str) -> bool:
        """True if value already is an encoding produced by hash()."""


class BcryptPasswordHash(PasswordHash):
    """
    bcrypt password hashing.

    Encodings look like $2b$12$<22 char salt><31 char digest>.
    bcrypt only reads the first 72 bytes of a password; longer input is
    cut there before hashing and verifying, so both sides agree.
    """

    ENCODING = re.compile(r"^\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}$")
    MAX_PASSWORD_BYTES = 72

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be within 4..31, got {rounds}")
        self.rounds = rounds

    @classmethod
    def from_config(cls) -> "BcryptPasswordHash":
        cfg = ConfigLoader.get_config().get("simple_auth", {})
        return cls(int(cfg.get("bcrypt_rounds", 12)))

    def _secret(self, password: str) -> bytes:
        return password.encode("utf-8")[:self.MAX_PASSWORD_BYTES]

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._secret(password), salt).decode("utf-8")

    def verify(self, password: str, encoded: str) -> bool:
        try:
            return bcrypt.checkpw(self._secret(password), encoded.encode("utf-8"))
        except ValueError:
            return False

    def is_hash(self, value: str) -> bool:
        return bool(self.ENCODING.match(value))
