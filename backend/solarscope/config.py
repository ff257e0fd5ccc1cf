import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]
env_path = BASE_DIR / ".env"
load_dotenv(dotenv_path=env_path)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "")
    SQL_ECHO = _env_bool("SQL_ECHO")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    APP_ENV = os.getenv("APP_ENV", "development")

    # Startup probe of the durable store
    STORAGE_WARMUP_SECONDS = float(os.getenv("STORAGE_WARMUP_SECONDS", 2.0))
    STORAGE_PROBE_TIMEOUT_SECONDS = float(os.getenv("STORAGE_PROBE_TIMEOUT_SECONDS", 5.0))

    # Login-session store
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", 86400))

    def __init__(self, **overrides: Optional[object]) -> None:
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

settings = Settings()
