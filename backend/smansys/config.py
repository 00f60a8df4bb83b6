"""
Application configuration from environment variables.
Loads .env from the backend directory so settings are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of smansys/); load explicitly so it applies when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local runs and tests, postgresql for production
    database_url: str = "sqlite:///./smansys_dev.db"
    # "sql" uses DATABASE_URL; "memory" keeps everything in process (demo mode, lost on restart)
    storage_backend: str = "sql"

    # Environment: set ENV=production in production; used to enforce SECRET_KEY.
    env: str = ""

    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24 * 7

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:3000,http://localhost:3001"

    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000

    # Avatar upload: bytes are validated then discarded; a placeholder URL is stored instead
    avatar_max_bytes: int = 5 * 1024 * 1024
    avatar_allowed_types: str = "image/jpeg,image/png,image/gif,image/webp"
    avatar_placeholder_url: str = "https://api.dicebear.com/7.x/avataaars/svg"

    # Seed admin/manager/user demo accounts (password "password") at startup
    seed_demo_users: bool = False

    debug: bool = False
    log_level: str = "INFO"

    @field_validator("storage_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, v: str) -> str:
        s = (v or "sql").strip().lower()
        if s not in ("sql", "memory"):
            raise ValueError("STORAGE_BACKEND must be 'sql' or 'memory'")
        return s

    @property
    def is_production(self) -> bool:
        return (self.env or "").strip().lower() == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def avatar_allowed_type_list(self) -> list[str]:
        return [t.strip().lower() for t in self.avatar_allowed_types.split(",") if t.strip()]


settings = Settings()
