"""
UTXOLedger - Schema Migrations
================================
Alembic migrations, runnable without an alembic.ini.

Example:
    >>> upgrade_database("sqlite:///data/utxoledger.db")
"""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from utxo_ledger.errors import MigrationError
from utxo_ledger.logging_setup import get_logger


logger = get_logger("storage.migrations")

MIGRATIONS_DIR = Path(__file__).resolve().parent


def get_alembic_config(database_url: str) -> Config:
    """Alembic config pointing at this package's scripts"""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def upgrade_database(database_url: str, revision: str = "head") -> None:
    """
    Upgrade the schema to revision.
    
    Raises:
        MigrationError: If alembic fails
    """
    try:
        command.upgrade(get_alembic_config(database_url), revision)
    except Exception as e:
        raise MigrationError(
            f"Schema upgrade to {revision} failed: {e}",
            code="MIGRATION_FAILED"
        ) from e
    
    logger.info("Database schema upgraded", extra_data={"revision": revision})


def stamp_database(engine: Engine, revision: str = "head") -> None:
    """
    Mark a schema built by create_all as being at revision, so that a
    later upgrade starts from there instead of recreating tables.
    
    Raises:
        MigrationError: If alembic fails
    """
    config = get_alembic_config(engine.url.render_as_string(hide_password=False))
    try:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.stamp(config, revision)
    except Exception as e:
        raise MigrationError(
            f"Schema stamp to {revision} failed: {e}",
            code="MIGRATION_FAILED"
        ) from e
    
    logger.info("Database schema stamped", extra_data={"revision": revision})


def current_revision(database_url: str):
    """Revision currently stamped in the database (None if unversioned)"""
    engine = create_engine(database_url)
    try:
        with engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()


__all__ = [
    "MIGRATIONS_DIR",
    "get_alembic_config",
    "upgrade_database",
    "stamp_database",
    "current_revision",
]
