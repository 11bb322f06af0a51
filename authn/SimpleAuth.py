#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from authn.Errors import StoreError
from authn.crypto.PasswordHash import BcryptPasswordHash, PasswordHash
from authn.database.AuthModel import SimpleCredential
from authn.database.DatabaseConnection import DatabaseConnection
from utils.Logger import Logger


class SimpleAuth:
    """
    Username + password check against a stored bcrypt hash.

    An identity without a credential (or with an empty one) is provisioned
    with the first password it is presented with. This is logged as a
    warning every time it happens; deployments that pre-provision every
    identity never hit it.
    """

    def __init__(self, database: DatabaseConnection, hasher: PasswordHash | None = None):
        self.database = database
        self.hasher = hasher or BcryptPasswordHash.from_config()

    def authenticate(self, username: str, password: str) -> int | None:
        identity = self.database.get_identity_by_username(username)
        if identity is None or identity.id is None:
            return None

        table = self.database.simple_credential
        credential = table.fetch([identity.id], "identity_id")[0]

        if credential is None:
            credential = SimpleCredential(identity_id=identity.id)
            credential.set_password(password, self.hasher)
            if table.insert(credential) is None:
                raise StoreError(f"Unable to create simple credential for '{username}'.")
            Logger.warning(
                f"[SimpleAuth] Provisioned credential for identity {identity.id} on first use"
            )

        elif not credential.has_password():
            credential.set_password(password, self.hasher)
            if not table.update(credential):
                raise StoreError(f"Unable to store password for '{username}'.")
            Logger.warning(
                f"[SimpleAuth] Back-filled empty password for identity {identity.id}"
            )

        if credential.verify_password(password, self.hasher):
            Logger.debug(f"[SimpleAuth] Identity {identity.id} authenticated")
            return identity.id

        Logger.debug(f"[SimpleAuth] Password mismatch for identity {identity.id}")
        return None
