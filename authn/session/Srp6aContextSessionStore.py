#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from authn.database.AuthModel import Srp6aSession
from authn.session.Srp6aSessionStore import Srp6aSessionStore


class HandshakeContext:
    """
    Request-scoped holder for at most one SRP6a handshake.

    The caller owns it (e.g. one per HTTP session or connection) and passes
    it to Srp6aContextSessionStore. A second challenge replaces the first.
    """

    def __init__(self):
        self.srp6a_session: Srp6aSession | None = None

    def clear(self):
        self.srp6a_session = None


class Srp6aContextSessionStore(Srp6aSessionStore):
    """
    Session store holding a single handshake in a HandshakeContext.

    Only valid when the context never has more than one handshake in
    flight; this is not detected.
    """

    def __init__(self, ttl: int, context: HandshakeContext):
        super().__init__(ttl)
        self.context = context

    def _matches(self, row: Srp6aSession | None, identity_id: int, public_a: str) -> bool:
        return (
            row is not None
            and row.identity_id == identity_id
            and row.public_ephemeral_value_a == public_a
        )

    def drop(self, identity_id: int, public_a: str) -> None:
        if self._matches(self.context.srp6a_session, identity_id, public_a):
            self.context.clear()

    def save(self, row: Srp6aSession) -> int:
        self._check_key(row)
        expire = self._stamp(row)
        self.context.srp6a_session = row
        return expire

    def load(self, identity_id: int, public_a: str) -> Srp6aSession | None:
        row = self.context.srp6a_session
        if not self._matches(row, identity_id, public_a):
            return None
        if row.is_expired(self.now()):
            self.context.clear()
            return None
        return row

    def purge_expired(self) -> int:
        row = self.context.srp6a_session
        if row is not None and row.is_expired(self.now()):
            self.context.clear()
            return 1
        return 0
