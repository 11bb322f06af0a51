#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from sqlalchemy import (
    CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
)
from sqlalchemy.orm import declarative_base

from authn.crypto.PasswordHash import BcryptPasswordHash, PasswordHash

Base = declarative_base()

ROOT_IDENTITY_ID = 0
ROOT_USERNAME = "root"


class RowMixin:
    """Explicit map <-> row conversion shared by every table."""

    @classmethod
    def from_dict(cls, data: dict):
        columns = {c.key for c in cls.__table__.columns}
        unknown = set(data) - columns
        if unknown:
            raise ValueError(f"Unknown {cls.__tablename__} columns: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict:
        return {c.key: getattr(self, c.key) for c in self.__table__.columns}


# -------------------------------------------------------
# IDENTITY TABLE
# -------------------------------------------------------
class Identity(RowMixin, Base):
    __tablename__ = "identity"
    __table_args__ = (
        CheckConstraint("length(username) > 0", name="ck_identity_username"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False)

    def __repr__(self):
        return f"<Identity id={self.id} username={self.username!r}>"


# -------------------------------------------------------
# SIMPLE AUTHN CREDENTIAL
# -------------------------------------------------------
class SimpleCredential(Base):
    __tablename__ = "simple_credential"
    __table_args__ = (
        CheckConstraint(
            "password_hash IS NULL OR length(password_hash) > 0",
            name="ck_simple_credential_password_hash",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity_id = Column(
        Integer,
        ForeignKey("identity.id", onupdate="CASCADE", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    _password_hash = Column("password_hash", String(255), nullable=True)

    @classmethod
    def from_dict(cls, data: dict, hasher: PasswordHash | None = None):
        """
        Build a credential from a map. A "password" entry goes through
        set_password(); a "password_hash" entry is taken as stored.
        """
        data = dict(data)
        row = cls(id=data.pop("id", None), identity_id=data.pop("identity_id", None))
        if "password_hash" in data:
            row._password_hash = data.pop("password_hash")
        if "password" in data:
            row.set_password(data.pop("password"), hasher)
        if data:
            raise ValueError(f"Unknown simple_credential columns: {sorted(data)}")
        return row

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "identity_id": self.identity_id,
            "password_hash": self._password_hash,
        }

    @property
    def password_hash(self) -> str | None:
        return self._password_hash

    def has_password(self) -> bool:
        return bool(self._password_hash)

    def set_password(self, password: str | None, hasher: PasswordHash | None = None) -> None:
        """
        Empty or whitespace-only clears the hash. A value that already is
        a hash encoding is stored as-is so re-assignment never double-hashes.
        """
        if password is None or not password.strip():
            self._password_hash = None
            return
        hasher = hasher or BcryptPasswordHash.from_config()
        if hasher.is_hash(password):
            self._password_hash = password
        else:
            self._password_hash = hasher.hash(password)

    def verify_password(self, password: str, hasher: PasswordHash | None = None) -> bool:
        if not self._password_hash:
            return False
        hasher = hasher or BcryptPasswordHash.from_config()
        return hasher.verify(password, self._password_hash)


# -------------------------------------------------------
# SRP6a AUTHN CREDENTIAL (salt + verifier)
# -------------------------------------------------------
class Srp6aCredential(RowMixin, Base):
    __tablename__ = "srp6a_credential"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity_id = Column(
        Integer,
        ForeignKey("identity.id", onupdate="CASCADE", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    salt = Column(String(64), nullable=False)
    password_verifier = Column(String(2048), nullable=False)


# -------------------------------------------------------
# SRP6a HANDSHAKE SESSION
# -------------------------------------------------------
class Srp6aSession(RowMixin, Base):
    __tablename__ = "srp6a_session"
    __table_args__ = (
        UniqueConstraint(
            "identity_id", "public_ephemeral_value_a",
            name="uq_srp6a_session_identity_a",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity_id = Column(
        Integer,
        ForeignKey("identity.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    public_ephemeral_value_a = Column(String(2048), nullable=False)
    secret_ephemeral_value_b = Column(String(2048), nullable=False)
    public_ephemeral_value_b = Column(String(2048), nullable=False)

    # filled in once the client proof checks out
    random_scrambling_parameter = Column(String(256), nullable=True)
    server_session_key = Column(String(2048), nullable=True)
    key = Column(String(256), nullable=True)

    expire_timestamp = Column(Integer, nullable=False, index=True)

    def is_expired(self, now: int) -> bool:
        return self.expire_timestamp is None or self.expire_timestamp <= now

    def is_proven(self) -> bool:
        return self.key is not None

    def __repr__(self):
        # secrets stay out of reprs and logs
        return (
            f"<Srp6aSession identity_id={self.identity_id} "
            f"expire={self.expire_timestamp} proven={self.is_proven()}>"
        )
