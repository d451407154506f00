"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ──────────────────────────────
    POSTGRES_USER: str = "toezicht_user"
    POSTGRES_PASSWORD: str = "toezicht_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "toezicht_db"

    # Full URL override (e.g. sqlite+aiosqlite for local runs)
    SQLALCHEMY_DATABASE_URL: str = ""

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg unless overridden)."""
        if self.SQLALCHEMY_DATABASE_URL:
            return self.SQLALCHEMY_DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ── Redis / Celery ────────────────────────
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── File Storage ──────────────────────────
    FILE_PATH: str = "/data/files/"
    DESCRIPTOR_WORK_DIR: str = ""

    # ── Store partitions ─────────────────────
    FILE_GRAPH: str = "http://mu.semte.ch/graphs/public"
    ORGANIZATION_GRAPH_PREFIX: str = "http://mu.semte.ch/graphs/organizations/"
    ORGANIZATION_GRAPH_SUFFIX: str = "/LoketLB-toezichtGebruiker"

    # ── Packaging ─────────────────────────────
    PACKAGE_CRON_PATTERN: str = "*/12 * * * *"
    PACKAGING_TRIGGER_URL: str = "http://localhost/api/v1/package-toezicht-dossiers/"
    PACKAGING_TRIGGER_TIMEOUT: float = 30.0
    # 0 keeps the fan-out unbounded
    PACKAGING_MAX_CONCURRENCY: int = 0
    CREATE_SCHEMA_ON_STARTUP: bool = False

    # ── Application ───────────────────────────
    APP_ENV: str = "development"

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}

    @property
    def descriptor_work_dir(self) -> str:
        """Directory for temporary descriptor files (defaults to the storage root)."""
        return self.DESCRIPTOR_WORK_DIR or self.FILE_PATH


settings = Settings()
