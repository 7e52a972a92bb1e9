import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_ALLOWED_ORIGINS = [
    # local frontends
    "http://localhost:3000",
    "http://localhost:5173",
]


@dataclass(frozen=True)
class Settings:
    webhook_url: Optional[str] = None
    webhook_timeout_seconds: float = 10.0

    # supabase | postgres | memory
    store_backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_schema: str = "public"
    database_url: Optional[str] = None
    company_table: str = "bot_data"

    poll_interval_seconds: float = 2.0
    poll_max_attempts: int = 15
    api_base_url: str = "http://localhost:5000"

    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    log_level: str = "INFO"


def _split_origins(value: Optional[str]) -> List[str]:
    if not value:
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        webhook_url=os.getenv("WEBHOOK_URL"),
        webhook_timeout_seconds=float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10")),
        store_backend=os.getenv("STORE_BACKEND", "supabase").lower(),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_KEY"),
        supabase_schema=os.getenv("SUPABASE_SCHEMA", "public"),
        database_url=os.getenv("DATABASE_URL"),
        company_table=os.getenv("COMPANY_TABLE", "bot_data"),
        poll_interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "2")),
        poll_max_attempts=int(os.getenv("POLL_MAX_ATTEMPTS", "15")),
        api_base_url=os.getenv("API_BASE_URL", "http://localhost:5000"),
        allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
