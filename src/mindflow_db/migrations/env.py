"""Alembic environment for the ``flow_records`` schema.

Migrations run synchronously against ``DatabaseSettings.sync_url``.  The
revision history is kept in its own version table and autogenerate only
considers tables declared on ``mindflow_db`` metadata, so the schema can
share a database with other applications.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from mindflow_db.engine import DatabaseSettings
from mindflow_db.models.base import Base
from mindflow_db.models.record import FlowRecord

VERSION_TABLE = "mindflow_alembic_version"
FLOW_TABLES = {FlowRecord.__tablename__}

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _include_object(obj, name, type_, reflected, compare_to) -> bool:
    # Reflected tables owned by someone else are left alone
    if type_ == "table":
        return name in FLOW_TABLES
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        version_table=VERSION_TABLE,
        include_object=_include_object,
        compare_type=True,
        **kwargs,
    )


def run_offline(url: str) -> None:
    """Write the migration SQL to stdout."""
    _configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


_url = DatabaseSettings.from_env().sync_url
if context.is_offline_mode():
    run_offline(_url)
else:
    run_online(_url)
