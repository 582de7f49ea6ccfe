from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from xpensify.providers.config import ConfigProvider

sqlalchemy_config = context.config
project_config = ConfigProvider.get_config()

if sqlalchemy_config.config_file_name is not None:
    fileConfig(sqlalchemy_config.config_file_name)

url = (
    f"{project_config.POSTGRES_DRIVER}://"
    f"{project_config.POSTGRES_USER}:{project_config.POSTGRES_PASSWORD}@"
    f"{project_config.POSTGRES_HOST}:{project_config.POSTGRES_PORT}/"
    f"{project_config.POSTGRES_DB}"
)

sqlalchemy_config.set_main_option("sqlalchemy.url", url)

target_metadata = None


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    context.configure(
        url=sqlalchemy_config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection.

    When `POSTGRES_DB_SCHEMA` is set, the schema is put on the search path of
    the migration connection and holds the `alembic_version` table.
    """
    schema_name = project_config.POSTGRES_DB_SCHEMA
    config_section = sqlalchemy_config.get_section(sqlalchemy_config.config_ini_section, {})

    if schema_name:
        config_section["connect_args"] = {"options": f"-csearch_path={schema_name}"}

    connectable = engine_from_config(
        config_section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            version_table_schema=schema_name,
            include_schemas=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
