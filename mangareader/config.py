import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv
from fastapi import Request

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite+aiosqlite:///./mangareader.db"
    db_schema: Optional[str] = None
    db_echo: bool = False

    secret_key: Optional[str] = None
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 4320  # 3 days

    image_path: str = "./public/images"
    image_url_prefix: str = "/public/images"
    max_upload_bytes: int = 5 * 1024 * 1024

    scrape_path: str = "./images"
    scrape_cleanup_seconds: float = 60

    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))
    rate_limit_enabled: bool = True
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = tuple(
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        )
        return cls(
            database_url=os.getenv("DATABASE_URL") or cls.database_url,
            db_schema=os.getenv("DB_SCHEMA") or None,
            db_echo=_env_bool("DB_ECHO", "false"),
            secret_key=os.getenv("SECRET_KEY") or None,
            algorithm=os.getenv("ALGORITHM", "HS256"),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", "4320"),
            image_path=os.getenv("IMAGE_PATH", cls.image_path),
            image_url_prefix=os.getenv("IMAGE_URL_PREFIX", cls.image_url_prefix).rstrip("/"),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", str(cls.max_upload_bytes)),
            scrape_path=os.getenv("SCRAPE_PATH", cls.scrape_path),
            scrape_cleanup_seconds=float(os.getenv("SCRAPE_CLEANUP_SECONDS", "60")),
            cors_origins=origins or ("*",),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=_env_int("PORT", "8000"),
        )


# Table schema is fixed at import time because the declarative models need it.
DB_SCHEMA = os.getenv("DB_SCHEMA") or None


def get_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was built with."""
    return request.app.state.settings
