# alembic/env.py
from logging.config import fileConfig

from alembic import context

from app.core.config import get_database_url
from app.db.base import Base

# registra usuarios / empresas / tokens_reset_senha no Base.metadata
import app.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata
DATABASE_URL = get_database_url()

# SQLite não faz ALTER de verdade: migrations rodam em modo batch
RENDER_AS_BATCH = DATABASE_URL.strip().lower().startswith("sqlite")


def run_migrations_offline() -> None:
    """Gera o SQL sem conectar (alembic upgrade --sql)."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # mesmo engine da aplicação (foreign keys / BEGIN IMMEDIATE no SQLite)
    from app.db.session import engine

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=RENDER_AS_BATCH,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
