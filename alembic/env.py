from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
from appforge.core.config import settings
from appforge.db.session import Base
from appforge.db import models  # noqa

config = context.config
if config.config_file_name and config.file_config.has_section("loggers"):
    # Keep the service's own handlers; alembic.ini only adds its loggers.
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata
database_url = config.get_main_option("sqlalchemy.url") or settings.database_url
# SQLite cannot ALTER most columns in place; batch mode recreates the table instead.
render_as_batch = database_url.startswith("sqlite")


def run_migrations_offline():
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=render_as_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        {"sqlalchemy.url": database_url}, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
