import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _bool_env(name: str, default: bool) -> bool:
    return (os.getenv(name, str(default)) or "").strip().lower() == "true"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    STOCKY_VERSION: str = "0.1.0"
    TZ: str = "Asia/Kolkata"
    LOG_LEVEL: str = "INFO"

    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    PRICE_SCHEDULER_ENABLED: bool = True
    PRICE_TICK_SECONDS: int = 3600
    PRICE_WARMUP_SECONDS: int = 2

    SEED_DEMO_USER: bool = True


def load_settings() -> Settings:
    # .env is optional; real environment variables win
    load_dotenv(override=False)
    return Settings(
        STOCKY_VERSION=os.getenv("STOCKY_VERSION", "0.1.0"),
        TZ=os.getenv("TZ") or "Asia/Kolkata",
        LOG_LEVEL=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        SUPABASE_URL=(os.getenv("SUPABASE_URL") or "").rstrip("/") or None,
        SUPABASE_SERVICE_ROLE_KEY=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
        PRICE_SCHEDULER_ENABLED=_bool_env("PRICE_SCHEDULER_ENABLED", True),
        PRICE_TICK_SECONDS=_int_env("PRICE_TICK_SECONDS", 3600),
        PRICE_WARMUP_SECONDS=_int_env("PRICE_WARMUP_SECONDS", 2),
        SEED_DEMO_USER=_bool_env("SEED_DEMO_USER", True),
    )


settings = load_settings()
