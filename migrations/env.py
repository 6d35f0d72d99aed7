"""
Alembic env.py — resolves the database URL through legalms Settings.

Priority order for DB credentials (see legalms.core.config):
  1. LOCAL_DB_* variables  (when ENVIRONMENT=development)
  2. DB_HOST + DB_PASSWORD env vars
  3. AWS Secrets Manager at DB_SECRET_ID (staging / production)

Usage:
  # Development (local Docker Postgres):
  ENVIRONMENT=development alembic upgrade head

  # Production (credentials from Secrets Manager):
  ENVIRONMENT=production DB_HOST=... alembic upgrade head
"""
import logging
import sys
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

# ---------------------------------------------------------------------------
# Load .env from repo root and make the backend package importable
# ---------------------------------------------------------------------------
_repo_root = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=_repo_root / ".env", override=False)
sys.path.insert(0, str(_repo_root / "backend"))

from legalms.core.config import get_settings  # noqa: E402

logger = logging.getLogger("alembic.env")


def _get_db_url() -> str:
    """Return a psycopg2 connection URL based on the current environment."""
    try:
        return get_settings().database_url_sync
    except RuntimeError as exc:
        logger.error("%s", exc)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Alembic config
# ---------------------------------------------------------------------------
config = context.config
config.set_main_option("sqlalchemy.url", _get_db_url().replace("%", "%%"))

# Interpret the config file for Python logging
if config.config_file_name is not None:
    import logging.config
    logging.config.fileConfig(config.config_file_name)

target_metadata = None  # Raw SQL migrations; the ORM models are not consulted


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (generate SQL script without DB connection)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live DB connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
