"""Alembic environment for the review tables."""

from __future__ import annotations

import logging
from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[import-untyped]
from review_ingestor.models.base import DEFAULT_DATABASE_URL, Base, _load_models
from review_ingestor.utils.config import ensure_runtime_configuration, get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")

_load_models()
target_metadata = Base.metadata


def get_database_url() -> str:
    """
    Resolve the target database.

    ``alembic -x database_url=...`` wins; otherwise the runtime settings are
    validated and their URL is used.
    """
    override = context.get_x_argument(as_dictionary=True).get("database_url")
    if override:
        return override

    settings = ensure_runtime_configuration(get_settings())
    return settings.database_url or DEFAULT_DATABASE_URL


def _configure_options(url: str) -> dict[str, object]:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "transaction_per_migration": True,
        # SQLite cannot ALTER constraints in place.
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL for the review tables without a live connection."""

    url = get_database_url()
    context.configure(url=url, literal_binds=True, **_configure_options(url))

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a short-lived, unpooled connection."""

    url = get_database_url()
    logger.info("Migrating %s", url.split("@")[-1])
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
