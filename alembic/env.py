"""
Alembic environment for the stays schema.

Production runs against PostgreSQL, where every table lives in ``SCHEMA``
and the version table sits next to them. A SQLite URL (local experiments)
has no schemas, so the schema is dropped and batch mode is used for ALTERs.
"""

from logging.config import fileConfig
from typing import Any

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection
from sqlalchemy.schema import CreateSchema

from alembic import context  # type: ignore[attr-defined]
from stay_sync.config import DATABASE_URL, SCHEMA
from stay_sync.models.base import Base
from stay_sync.models.calendar import CalendarSyncState, ExternalCalendarEvent  # noqa: F401
from stay_sync.models.reservations import Reservation  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

config.set_main_option("sqlalchemy.url", DATABASE_URL)
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def include_object(object_: Any, name: str, type_: str, reflected: bool, compare_to: Any) -> bool:
    # Tables of other apps sharing the database are not ours to diff
    schema = getattr(object_, "schema", SCHEMA)
    return IS_SQLITE or schema in (SCHEMA, None)


def migration_options() -> dict[str, Any]:
    if IS_SQLITE:
        return {"render_as_batch": True}
    return {
        "include_schemas": True,
        "include_object": include_object,
        "version_table_schema": SCHEMA,
    }


def run_migrations_offline() -> None:
    """Emit the SQL for ``alembic upgrade --sql`` instead of executing it."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **migration_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_with_connection(connection: Connection) -> None:
    if connection.dialect.name == "postgresql":
        connection.execute(CreateSchema(SCHEMA, if_not_exists=True))
        connection.commit()
    else:
        connection = connection.execution_options(schema_translate_map={SCHEMA: None})

    context.configure(connection=connection, target_metadata=Base.metadata, **migration_options())
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        run_with_connection(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
