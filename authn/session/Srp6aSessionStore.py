#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from authn.Errors import ValidationError
from authn.database.AuthModel import Srp6aSession


@dataclass(frozen=True)
class Srp6aSessionInfo:
    """Public view of a handshake session; carries no secret values."""
    identity_id: int
    public_ephemeral_value_a: str
    public_ephemeral_value_b: str
    expire_timestamp: int
    proven: bool

    @classmethod
    def from_row(cls, row: Srp6aSession) -> "Srp6aSessionInfo":
        return cls(
            identity_id=row.identity_id,
            public_ephemeral_value_a=row.public_ephemeral_value_a,
            public_ephemeral_value_b=row.public_ephemeral_value_b,
            expire_timestamp=row.expire_timestamp,
            proven=row.is_proven(),
        )


class Srp6aSessionStore(ABC):
    """
    Keeps in-flight SRP6a handshakes between the challenge and proof requests.

    Sessions are keyed by (identity_id, A). Expiry is checked lazily on
    access: an expired session is dropped and reported as absent.
    """

    def __init__(self, ttl: int):
        self.ttl = int(ttl)

    @staticmethod
    def now() -> int:
        return int(time.time())

    def _check_key(self, row: Srp6aSession) -> None:
        if row.identity_id is None:
            raise ValidationError("Unable to save session: invalid identity_id.")
        if row.public_ephemeral_value_a is None:
            raise ValidationError("Unable to save session: invalid public_ephemeral_value_a.")

    def _stamp(self, row: Srp6aSession) -> int:
        row.expire_timestamp = self.now() + self.ttl
        return row.expire_timestamp

    def bump(self, identity_id: int, public_a: str) -> int | None:
        """Push the expiry of a live session forward; None if there is none."""
        row = self.load(identity_id, public_a)
        if row is None:
            return None
        return self.save(row)

    @abstractmethod
    def save(self, row: Srp6aSession) -> int:
        """Insert or update the session and return its new expiry."""

    @abstractmethod
    def load(self, identity_id: int, public_a: str) -> Srp6aSession | None:
        """The live session for the key, or None."""

    @abstractmethod
    def drop(self, identity_id: int, public_a: str) -> None:
        """Forget the session for the key, if any."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Remove every expired session this store holds."""
