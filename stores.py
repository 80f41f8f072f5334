"""
SQLAlchemy-backed credential and link stores.

Each method opens its own short Session, so a store instance can be shared by
every request thread. IntegrityError on insert becomes DuplicateKey, any other
SQLAlchemy failure becomes StoreUnavailable.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, String, create_engine, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from errors import DuplicateKey, StoreUnavailable
from models import Capability, Credential, ShortLink

log = logging.getLogger("fileshare.store")

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApiKeyRow(Base):
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True)
    key = Column(String(255), unique=True, index=True, nullable=False)
    capability = Column(String(50), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_credential(self) -> Optional[Credential]:
        # unknown scopes, e.g. a legacy "api" key, read as absent
        try:
            capability = Capability(self.capability)
        except ValueError:
            log.warning("Ignoring api key row %s with unknown capability %r", self.id, self.capability)
            return None
        return Credential(secret=self.key, capability=capability, enabled=bool(self.is_enabled))


class ShortLinkRow(Base):
    __tablename__ = "short_links"

    id = Column(Integer, primary_key=True)
    short_code = Column(String(64), unique=True, index=True, nullable=False)
    filename = Column(String(255), nullable=False)
    is_private = Column(Boolean, nullable=False, default=True)
    is_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_link(self) -> ShortLink:
        return ShortLink(
            code=self.short_code,
            target_filename=self.filename,
            private=bool(self.is_private),
            enabled=bool(self.is_enabled),
        )


def make_session_factory(database_url: str) -> sessionmaker:
    """Create the engine, make sure both tables exist and return a session factory."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, future=True, pool_pre_ping=True, connect_args=connect_args)
    Base.metadata.create_all(engine)
    log.info("Database schema ready (%s)", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


class _SqlStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise DuplicateKey() from e
        except SQLAlchemyError as e:
            session.rollback()
            log.error("Store operation failed: %s", e.__class__.__name__)
            raise StoreUnavailable() from e
        finally:
            session.close()


class SqlCredentialStore(_SqlStore):
    def find_by_credential_and_capability(self, secret: str, capability: Capability) -> Optional[Credential]:
        with self._session() as s:
            row = s.execute(
                select(ApiKeyRow).where(ApiKeyRow.key == secret, ApiKeyRow.capability == capability.value)
            ).scalar_one_or_none()
            return row.to_credential() if row else None

    def find_by_secret(self, secret: str) -> Optional[Credential]:
        with self._session() as s:
            row = s.execute(select(ApiKeyRow).where(ApiKeyRow.key == secret)).scalar_one_or_none()
            return row.to_credential() if row else None

    def insert(self, credential: Credential) -> None:
        with self._session() as s:
            s.add(
                ApiKeyRow(
                    key=credential.secret,
                    capability=credential.capability.value,
                    is_enabled=credential.enabled,
                )
            )

    def set_enabled(self, secret: str, value: bool) -> None:
        with self._session() as s:
            s.execute(update(ApiKeyRow).where(ApiKeyRow.key == secret).values(is_enabled=value))


class SqlLinkStore(_SqlStore):
    def find_by_code(self, code: str) -> Optional[ShortLink]:
        with self._session() as s:
            row = s.execute(select(ShortLinkRow).where(ShortLinkRow.short_code == code)).scalar_one_or_none()
            return row.to_link() if row else None

    def exists_by_code(self, code: str) -> bool:
        with self._session() as s:
            found = s.execute(select(ShortLinkRow.id).where(ShortLinkRow.short_code == code)).first()
            return found is not None

    def insert(self, link: ShortLink) -> None:
        with self._session() as s:
            s.add(
                ShortLinkRow(
                    short_code=link.code,
                    filename=link.target_filename,
                    is_private=link.private,
                    is_enabled=link.enabled,
                )
            )

    def set_enabled(self, code: str, value: bool) -> None:
        with self._session() as s:
            s.execute(update(ShortLinkRow).where(ShortLinkRow.short_code == code).values(is_enabled=value))
