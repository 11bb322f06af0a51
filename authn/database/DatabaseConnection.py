#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker

from authn.Errors import StoreError
from authn.database.AuthModel import (
    Base, Identity, SimpleCredential, Srp6aCredential, Srp6aSession,
    ROOT_IDENTITY_ID, ROOT_USERNAME,
)
from utils.ConfigLoader import ConfigLoader
from utils.Logger import Logger


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _keep_mysql_zero_ids(dbapi_connection, connection_record):
    # the root identity is id 0; without this MySQL treats 0 as "next id"
    cursor = dbapi_connection.cursor()
    cursor.execute(
        "SET SESSION sql_mode = "
        "CONCAT_WS(',', NULLIF(@@SESSION.sql_mode, ''), 'NO_AUTO_VALUE_ON_ZERO')"
    )
    cursor.close()


class Table:
    """
    Row store for one model.

    This is the whole persistence contract the authentication code relies on:
    fetch / insert / update / delete. Failures are logged, rolled back and
    reported through the return value; callers decide whether that is fatal.
    """

    def __init__(self, database: "DatabaseConnection", model):
        self.database = database
        self.model = model

    @property
    def name(self) -> str:
        return self.model.__tablename__

    def fetch(self, values: list, column: str = "id") -> list:
        """
        One entry per requested value, None where no row matches.
        """
        session = self.database.session()
        attr = getattr(self.model, column)
        return [session.query(self.model).filter(attr == value).first() for value in values]

    def first(self, *criteria):
        return self.database.session().query(self.model).filter(*criteria).first()

    def all(self, *criteria) -> list:
        return self.database.session().query(self.model).filter(*criteria).all()

    def insert(self, row) -> int | None:
        """Returns the generated id, or None if the row was refused."""
        session = self.database.session()
        try:
            session.add(row)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            Logger.error(f"[DB] Insert into {self.name} violates a constraint: {e.orig}")
            return None
        except SQLAlchemyError as e:
            session.rollback()
            Logger.error(f"[DB] Insert into {self.name} failed: {e}")
            return None
        return row.id

    def update(self, row) -> bool:
        session = self.database.session()
        try:
            session.merge(row)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            Logger.error(f"[DB] Update of {self.name} failed: {e}")
            return False
        return True

    def delete(self, *criteria) -> int:
        """Delete every row matching criteria; returns the row count."""
        session = self.database.session()
        try:
            count = (
                session.query(self.model)
                .filter(*criteria)
                .delete(synchronize_session="fetch")
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            Logger.error(f"[DB] Delete from {self.name} failed: {e}")
            raise StoreError(f"Unable to delete from {self.name}.") from e
        return count


class DatabaseConnection:
    """Handles the authentication database: engine, session and tables."""

    def __init__(self, url: str = "sqlite://", echo: bool = False):
        self.url = url
        self._engine = create_engine(url, echo=echo, pool_pre_ping=True)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)
        elif self._engine.dialect.name == "mysql":
            event.listen(self._engine, "connect", _keep_mysql_zero_ids)

        self._session = scoped_session(
            sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        )

        self.identity = Table(self, Identity)
        self.simple_credential = Table(self, SimpleCredential)
        self.srp6a_credential = Table(self, Srp6aCredential)
        self.srp6a_session = Table(self, Srp6aSession)

    @classmethod
    def from_config(cls) -> "DatabaseConnection":
        db = ConfigLoader.get_config()["database"]
        return cls(db["url"], echo=bool(db.get("echo", False)))

    @property
    def engine(self):
        return self._engine

    def session(self):
        return self._session()

    # SCHEMA
    def create_tables(self):
        """Create the schema and make sure the root identity exists."""
        Base.metadata.create_all(self._engine)
        self._create_root_identity()
        Logger.info(f"[DB] Authentication tables ready ({self._engine.dialect.name})")

    def drop_tables(self):
        self._session.remove()
        Base.metadata.drop_all(self._engine)

    def dispose(self):
        self._session.remove()
        self._engine.dispose()

    def _create_root_identity(self):
        root = self.identity.first(Identity.id == ROOT_IDENTITY_ID)
        if root is None:
            if self.identity.insert(Identity(id=ROOT_IDENTITY_ID, username=ROOT_USERNAME)) is None:
                root = self.identity.first(Identity.username == ROOT_USERNAME)
            else:
                root = self.identity.first(Identity.id == ROOT_IDENTITY_ID)
                Logger.success(f"[DB] Created root identity '{ROOT_USERNAME}'")

        if root is None or root.id != ROOT_IDENTITY_ID or root.username != ROOT_USERNAME:
            raise StoreError("Invalid root identity.")

    # IDENTITY HELPERS
    def get_identity_by_username(self, username: str) -> Identity | None:
        return self.identity.fetch([username], "username")[0]

    def create_identity(self, username: str) -> int | None:
        return self.identity.insert(Identity(username=username))
