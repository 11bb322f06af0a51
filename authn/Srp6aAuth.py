#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import hmac
import time
from dataclasses import dataclass

from authn.Errors import ExpiredChallengeError, StoreError, ValidationError
from authn.crypto.Srp6aClient import Srp6aClient
from authn.crypto.Srp6aCrypto import Srp6aCrypto, canonical_hex, from_hex, to_hex
from authn.database.AuthModel import Srp6aCredential, Srp6aSession
from authn.database.DatabaseConnection import DatabaseConnection
from authn.session.Srp6aContextSessionStore import HandshakeContext, Srp6aContextSessionStore
from authn.session.Srp6aDbSessionStore import Srp6aDbSessionStore
from authn.session.Srp6aSessionStore import Srp6aSessionInfo, Srp6aSessionStore
from utils.ConfigLoader import ConfigLoader
from utils.Logger import Logger


@dataclass(frozen=True)
class Srp6aChallenge:
    """Server answer to a challenge request: everything the client may see."""
    expire: int
    salt: str
    public_ephemeral_value_b: str

    def to_dict(self) -> dict:
        return {
            "expire": self.expire,
            "salt": self.salt,
            "publicEphemeralValueB": self.public_ephemeral_value_b,
        }


class Srp6aAuth:
    """
    Server side of the SRP6a challenge -> proof exchange.

    A handshake is CHALLENGE_ISSUED after authenticate_challenge() and ends
    either PROOF_VERIFIED (authenticate_proof() returned M2) or dropped
    (wrong proof; the client has to ask for a new challenge).

    Unknown usernames and identities without SRP6a credentials both yield
    None so callers cannot tell them apart.
    """

    def __init__(
        self,
        crypto: Srp6aCrypto,
        database: DatabaseConnection,
        session_store: Srp6aSessionStore,
    ):
        self.crypto = crypto
        self.database = database
        self.sessions = session_store

    @classmethod
    def from_config(
        cls,
        database: DatabaseConnection,
        context: HandshakeContext | None = None,
    ) -> "Srp6aAuth":
        """
        Build from etc/config.yaml. srp6a.session_backend selects the store:
        "database" or "context" (the latter needs a HandshakeContext).
        """
        cfg = ConfigLoader.get_config()["srp6a"]
        ttl = int(cfg.get("session_ttl", 600))
        backend = cfg.get("session_backend", "database")

        if backend == "database":
            store = Srp6aDbSessionStore(ttl, database)
        elif backend == "context":
            if context is None:
                raise ValueError("The context session backend needs a HandshakeContext")
            store = Srp6aContextSessionStore(ttl, context)
        else:
            raise ValueError(f"Unknown srp6a.session_backend '{backend}'")

        return cls(Srp6aCrypto.from_config(), database, store)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_credential(self, username: str) -> Srp6aCredential | None:
        identity = self.database.get_identity_by_username(username)
        if identity is None or identity.id is None:
            return None
        credential = self.database.srp6a_credential.fetch([identity.id], "identity_id")[0]
        if credential is None or credential.salt is None or credential.password_verifier is None:
            return None
        return credential

    def _parse_public_a(self, public_a_hex: str) -> int:
        public_a = from_hex(public_a_hex)
        if not self.crypto.validate_public_ephemeral_value(public_a):
            raise ValidationError("Invalid Public Ephemeral Value A.")
        return public_a

    # ------------------------------------------------------------------
    # Challenge / proof
    # ------------------------------------------------------------------

    def authenticate_challenge(self, username: str, public_a_hex: str) -> Srp6aChallenge | None:
        """
        Step 1: the client sends (username, A); answer with (expire, salt, B).

        Raises:
            ValidationError: A (or the freshly derived B) is 0 mod N.
        """
        public_a = self._parse_public_a(public_a_hex)
        a_key = to_hex(public_a)

        credential = self._get_credential(username)
        if credential is None:
            return None

        # a new challenge always restarts the handshake for this A
        self.sessions.drop(credential.identity_id, a_key)

        secret_b = self.crypto.generate_secret_ephemeral_value()
        public_b = self.crypto.calc_public_ephemeral_value_b(
            from_hex(credential.password_verifier), secret_b
        )
        if not self.crypto.validate_public_ephemeral_value(public_b):
            raise ValidationError("Invalid Public Ephemeral Value B.")

        expire = self.sessions.save(Srp6aSession(
            identity_id=credential.identity_id,
            public_ephemeral_value_a=a_key,
            secret_ephemeral_value_b=to_hex(secret_b),
            public_ephemeral_value_b=to_hex(public_b),
        ))
        Logger.debug(f"[SRP6a] Challenge issued for identity {credential.identity_id}")

        return Srp6aChallenge(
            expire=expire,
            salt=credential.salt,
            public_ephemeral_value_b=to_hex(public_b),
        )

    def authenticate_proof(self, username: str, public_a_hex: str, client_proof_hex: str) -> str | None:
        """
        Step 2: the client sends (username, A, M1); answer with M2 or None.

        A wrong M1 drops the handshake, so each challenge allows one guess.
        """
        public_a = self._parse_public_a(public_a_hex)
        a_key = to_hex(public_a)

        credential = self._get_credential(username)
        if credential is None:
            return None

        session = self.sessions.load(credential.identity_id, a_key)
        if (
            session is None
            or session.secret_ephemeral_value_b is None
            or session.public_ephemeral_value_b is None
        ):
            return None

        secret_b = from_hex(session.secret_ephemeral_value_b)
        public_b = from_hex(session.public_ephemeral_value_b)
        if not self.crypto.validate_public_ephemeral_value(public_b):
            raise ValidationError("Invalid Public Ephemeral Value B.")

        verifier = from_hex(credential.password_verifier)
        salt = from_hex(credential.salt)

        u = self.crypto.calc_random_scrambling_parameter(public_a, public_b)
        server_session_key = self.crypto.calc_server_session_key(public_a, verifier, u, secret_b)
        key = self.crypto.calc_key(server_session_key)
        expected_proof = self.crypto.calc_client_key_match(username, salt, public_a, public_b, key)

        try:
            client_proof = from_hex(client_proof_hex)
        except ValidationError:
            client_proof = None

        if client_proof is None or not hmac.compare_digest(to_hex(client_proof), to_hex(expected_proof)):
            self.sessions.drop(credential.identity_id, a_key)
            Logger.warning(f"[SRP6a] Proof mismatch for identity {credential.identity_id}; handshake dropped")
            return None

        session.random_scrambling_parameter = to_hex(u)
        session.server_session_key = to_hex(server_session_key)
        session.key = to_hex(key)
        self.sessions.save(session)

        server_proof = self.crypto.calc_server_key_match(public_a, client_proof, key)
        Logger.success(f"[SRP6a] Identity {credential.identity_id} authenticated")
        return to_hex(server_proof)

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def create(self, username: str, salt_hex: str, verifier_hex: str) -> int | None:
        """
        Store an SRP6a credential computed by the client.

        Raises:
            ValidationError: salt or verifier is not hex.
            StoreError: the identity already has a credential.
        """
        identity = self.database.get_identity_by_username(username)
        if identity is None or identity.id is None:
            return None

        row = Srp6aCredential(
            identity_id=identity.id,
            salt=canonical_hex(salt_hex),
            password_verifier=canonical_hex(verifier_hex),
        )
        if self.database.srp6a_credential.insert(row) is None:
            raise StoreError(f"Unable to create SRP6a credential for '{username}'.")

        Logger.success(f"[SRP6a] Credential created for identity {identity.id}")
        return identity.id

    def upgrade(self, username: str, password: str) -> int | None:
        """
        Derive salt and verifier on the server from a known password.

        Migration path for accounts that still hold a plaintext secret;
        the password crosses this boundary, unlike the normal exchange.
        """
        salt = self.crypto.generate_salt()
        private_key = self.crypto.calc_private_key(salt, username, password)
        verifier = self.crypto.calc_password_verifier(private_key)
        return self.create(username, to_hex(salt), to_hex(verifier))

    def fallback(self, username: str, password: str) -> int | None:
        """
        Run both sides of the exchange in this process.

        Only for clients that cannot do SRP6a themselves.

        Raises:
            ExpiredChallengeError: the challenge was already expired when read.
        """
        client = Srp6aClient(self.crypto, username, password)
        public_a_hex = client.start_authentication()

        challenge = self.authenticate_challenge(username, public_a_hex)
        if challenge is None:
            return None
        if challenge.expire < int(time.time()):
            raise ExpiredChallengeError("Challenge Expired.")

        client_proof_hex = client.process_challenge(challenge.salt, challenge.public_ephemeral_value_b)
        server_proof_hex = self.authenticate_proof(username, public_a_hex, client_proof_hex)
        if not client.verify_session(server_proof_hex):
            return None

        credential = self._get_credential(username)
        return credential.identity_id if credential is not None else None

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    def bump_session(self, username: str, public_a_hex: str) -> int | None:
        credential = self._get_credential(username)
        if credential is None:
            return None
        return self.sessions.bump(credential.identity_id, canonical_hex(public_a_hex))

    def load_session(self, username: str, public_a_hex: str) -> Srp6aSessionInfo | None:
        public_a = self._parse_public_a(public_a_hex)
        credential = self._get_credential(username)
        if credential is None:
            return None
        row = self.sessions.load(credential.identity_id, to_hex(public_a))
        return Srp6aSessionInfo.from_row(row) if row is not None else None

    def drop_session(self, username: str, public_a_hex: str) -> None:
        credential = self._get_credential(username)
        if credential is None:
            return
        self.sessions.drop(credential.identity_id, canonical_hex(public_a_hex))

    def reap_sessions(self) -> int:
        return self.sessions.purge_expired()
