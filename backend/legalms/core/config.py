"""
Application settings loaded from environment variables or .env file.

Priority:
  1. Environment variables (always win)
  2. .env file in project root (local dev)
  3. Defaults

When ENVIRONMENT=production and DB_PASSWORD is not set, credentials are fetched
from AWS Secrets Manager at DB_SECRET_ID.

When DEV_SKIP_AUTH=true (only allowed in development), JWT verification is
bypassed and requests are authenticated via the X-Dev-User-ID header.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_repo_root = Path(__file__).resolve().parents[3]  # backend/ → project root


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_repo_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    environment: str = "development"
    frontend_url: str = "http://localhost:4200"

    # ------------------------------------------------------------------ #
    # Database
    # ------------------------------------------------------------------ #
    # Full URL override (tests, one-off scripts). Wins over everything below.
    database_url_override: str = ""

    db_host: str = ""
    db_port: int = 5432
    db_name: str = "legalms"
    db_user: str = "postgres"
    db_password: str = ""
    db_secret_id: str = "/legalms/db/credentials"

    # Local dev overrides (used when ENVIRONMENT=development)
    local_db_host: str = "localhost"
    local_db_port: int = 5432
    local_db_name: str = "legalms_dev"
    local_db_user: str = "postgres"
    local_db_password: str = "localpassword"

    aws_region: str = "us-east-1"

    # ------------------------------------------------------------------ #
    # Auth
    # ------------------------------------------------------------------ #
    jwt_secret: str = "change-this-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Dev-mode bypass (only honoured when environment == "development")
    dev_skip_auth: bool = False

    # ------------------------------------------------------------------ #
    # Case / invoice numbering
    # ------------------------------------------------------------------ #
    # counter: atomic per-(kind, year) counter row
    # count:   count existing numbers then +1 (racy, kept for parity)
    sequence_strategy: str = "counter"
    # timestamp: degrade to last 4 digits of epoch ms
    # legacy:    as timestamp, but invoices always get INV-{year}-0001
    # strict:    surface the storage error
    sequence_fallback: str = "timestamp"
    sequence_max_attempts: int = 3

    # ------------------------------------------------------------------ #
    # Computed properties
    # ------------------------------------------------------------------ #

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def auth_disabled(self) -> bool:
        """True only when running in development with explicit opt-in."""
        return self.is_development and self.dev_skip_auth

    @property
    def cors_origins(self) -> list[str]:
        if self.is_development:
            return ["*"]
        return [url.strip() for url in self.frontend_url.split(",") if url.strip()]

    @property
    def database_url(self) -> str:
        """Async asyncpg URL."""
        if self.database_url_override:
            return self.database_url_override
        host, port, name, user, password = self._resolve_db_credentials()
        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"

    @property
    def database_url_sync(self) -> str:
        """Sync psycopg2 URL (Alembic)."""
        host, port, name, user, password = self._resolve_db_credentials()
        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

    def _resolve_db_credentials(self) -> tuple[str, int, str, str, str]:
        if self.is_development:
            return (
                self.local_db_host,
                self.local_db_port,
                self.local_db_name,
                self.local_db_user,
                self.local_db_password,
            )

        host = self.db_host
        password = self.db_password
        user = self.db_user

        # Pull from Secrets Manager if host set but password missing
        if host and not password:
            password, user = self._fetch_db_credentials_from_secrets_manager(user)

        if not host:
            raise RuntimeError("DB_HOST is not set. Update your environment or .env file.")

        return host, self.db_port, self.db_name, user, password

    def _fetch_db_credentials_from_secrets_manager(
        self, default_user: str
    ) -> tuple[str, str]:
        try:
            import boto3

            client = boto3.client("secretsmanager", region_name=self.aws_region)
            secret = client.get_secret_value(SecretId=self.db_secret_id)
            creds = json.loads(secret["SecretString"])
            return creds.get("password", ""), creds.get("username", default_user)
        except Exception as exc:
            logger.error("Failed to retrieve DB credentials from Secrets Manager: %s", exc)
            raise RuntimeError("Cannot connect to database: missing credentials") from exc

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v.lower()

    @field_validator("sequence_strategy")
    @classmethod
    def validate_sequence_strategy(cls, v: str) -> str:
        allowed = {"counter", "count"}
        if v.lower() not in allowed:
            raise ValueError(f"SEQUENCE_STRATEGY must be one of {allowed}")
        return v.lower()

    @field_validator("sequence_fallback")
    @classmethod
    def validate_sequence_fallback(cls, v: str) -> str:
        allowed = {"timestamp", "legacy", "strict"}
        if v.lower() not in allowed:
            raise ValueError(f"SEQUENCE_FALLBACK must be one of {allowed}")
        return v.lower()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
