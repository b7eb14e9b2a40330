"""Engine, session and schema helpers for the review database."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from importlib import import_module
from typing import Any

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, close_all_sessions, sessionmaker

from ..utils.config import GlobalSettings, get_settings

DEFAULT_DATABASE_URL = "sqlite:///./review_ingestor.db"


class Base(DeclarativeBase):
    """Declarative base shared by the review, rating and ledger tables."""


_ENGINE: Engine | None = None
_SESSION_FACTORY: sessionmaker[Session] | None = None
_MODELS_IMPORTED = False

_MODEL_MODULES = (
    "review_ingestor.models.review",
    "review_ingestor.models.overall_rating",
    "review_ingestor.models.processed_file",
)


def _load_models() -> None:
    """Import model modules so metadata is aware of every review table."""

    global _MODELS_IMPORTED
    if _MODELS_IMPORTED:
        return

    for module_name in _MODEL_MODULES:
        import_module(module_name)
    _MODELS_IMPORTED = True


def _engine_options(settings: GlobalSettings, database_url: str) -> dict[str, Any]:
    """Return ``create_engine`` keyword arguments for the configured backend."""

    pool_config = settings.database
    if database_url.startswith("sqlite"):
        # File workers write from several threads; SQLite serializes them with a busy wait.
        return {"connect_args": {"check_same_thread": False, "timeout": pool_config.timeout}}

    options: dict[str, Any] = {
        "connect_args": {},
        "pool_size": pool_config.pool_size,
        "max_overflow": pool_config.max_overflow,
        "pool_timeout": pool_config.timeout,
        "pool_pre_ping": pool_config.pre_ping,
    }
    if pool_config.recycle_seconds > 0:
        options["pool_recycle"] = pool_config.recycle_seconds
    return options


def _create_engine() -> Engine:
    """Build an engine for ``REVIEWS_DATABASE_URL`` (SQLite file by default)."""

    settings = get_settings()
    database_url = settings.database_url or DEFAULT_DATABASE_URL
    return create_engine(
        database_url, echo=False, future=True, **_engine_options(settings, database_url)
    )


def create_schema(engine: Engine) -> None:
    """Create any missing review tables; existing tables are left alone."""

    _load_models()
    Base.metadata.create_all(bind=engine)


def get_engine() -> Engine:
    """Return the process-wide engine, creating it and the schema on first use."""

    global _ENGINE
    if _ENGINE is None:
        _ENGINE = _create_engine()
        create_schema(_ENGINE)
    return _ENGINE


def get_session_factory() -> sessionmaker[Session]:
    """Return the cached ``sessionmaker``; sessions keep attributes after commit."""

    global _SESSION_FACTORY
    if _SESSION_FACTORY is None:
        _SESSION_FACTORY = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )
    return _SESSION_FACTORY


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide one transaction: commit on success, roll back on any error."""

    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_database() -> None:
    """Run a trivial query; raises ``SQLAlchemyError`` if the database is unreachable."""

    with get_engine().connect() as connection:
        connection.execute(text("SELECT 1"))


def reset_engine() -> None:
    """Dispose the engine so the next call rebinds to the current settings."""

    global _ENGINE, _SESSION_FACTORY, _MODELS_IMPORTED
    if _SESSION_FACTORY is not None:
        close_all_sessions()
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_FACTORY = None
    _MODELS_IMPORTED = False
