import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@dataclass(frozen=True)
class Settings:
    api_token: str
    database_url: str = DEFAULT_DATABASE_URL
    sql_echo: bool = False

    # Insert the two demo bookings on startup
    seed_demo_data: bool = False

    cors_origins: Tuple[str, ...] = ("*",)
    host: str = "127.0.0.1"
    port: int = 4000
    log_level: str = "INFO"


def _bool(name: str, default: str) -> bool:
    raw = os.getenv(name, default).strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off", ""}:
        return False
    raise ValueError(f"Invalid {name} value: {raw!r}. Expected a boolean.")


def _int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e


def _origins(raw: str) -> Tuple[str, ...]:
    parts = [p.strip() for p in raw.split(",")]
    return tuple(p for p in parts if p)


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    # 1. Load environment variables from .env file
    load_dotenv(dotenv_path=dotenv_path, override=False)

    # 2. The token is the only required value; fail fast without it.
    api_token = os.environ.get("API_TOKEN")
    if not api_token:
        raise ValueError("API_TOKEN is not set. Please check your .env file.")

    return Settings(
        api_token=api_token,
        database_url=os.environ.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
        sql_echo=_bool("SQL_ECHO", "0"),
        seed_demo_data=_bool("SEED_DEMO_DATA", "0"),
        cors_origins=_origins(os.environ.get("CORS_ORIGINS", "*")),
        host=os.environ.get("HOST", "127.0.0.1"),
        port=_int("PORT", "4000"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
