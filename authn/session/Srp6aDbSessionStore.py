#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from authn.Errors import StoreError
from authn.database.AuthModel import Srp6aSession
from authn.database.DatabaseConnection import DatabaseConnection
from authn.session.Srp6aSessionStore import Srp6aSessionStore
from utils.Logger import Logger


class Srp6aDbSessionStore(Srp6aSessionStore):
    """
    Session store backed by the srp6a_session table.

    Supports any number of concurrent handshakes. Every save and load
    first removes all expired rows of every identity.
    """

    def __init__(self, ttl: int, database: DatabaseConnection):
        super().__init__(ttl)
        self.database = database
        self.table = database.srp6a_session

    def _key_criteria(self, identity_id: int, public_a: str):
        return (
            Srp6aSession.identity_id == identity_id,
            Srp6aSession.public_ephemeral_value_a == public_a,
        )

    def purge_expired(self) -> int:
        count = self.table.delete(Srp6aSession.expire_timestamp <= self.now())
        if count:
            Logger.debug(f"[Session] Purged {count} expired SRP6a session(s)")
        return count

    def drop(self, identity_id: int, public_a: str) -> None:
        self.table.delete(*self._key_criteria(identity_id, public_a))

    def load(self, identity_id: int, public_a: str) -> Srp6aSession | None:
        self.purge_expired()
        row = self.table.first(*self._key_criteria(identity_id, public_a))
        if row is None:
            return None
        if row.is_expired(self.now()):
            self.drop(identity_id, public_a)
            return None
        return row

    def save(self, row: Srp6aSession) -> int:
        self._check_key(row)

        existing = self.load(row.identity_id, row.public_ephemeral_value_a)
        expire = self._stamp(row)
        if existing is None:
            if self.table.insert(row) is None:
                raise StoreError("Unable to insert session row.")
            return expire

        if existing is not row:
            for column in Srp6aSession.__table__.columns:
                if column.key != "id":
                    setattr(existing, column.key, getattr(row, column.key))
        if not self.table.update(existing):
            raise StoreError("Unable to update session row.")
        return expire
