import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv


def _origins(raw: str | None) -> List[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if not origins:
        # Local dev defaults (Vite 5173, Next.js 3000)
        origins = ["http://localhost:5173", "http://localhost:3000"]
    return origins


@dataclass(frozen=True)
class Settings:
    base_url: str = "http://localhost:8000"
    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: float = 120.0
    heartbeat_interval: float = 15.0
    cors_origins: List[str] = field(default_factory=lambda: _origins(None))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment (and a .env file, if present)."""
        load_dotenv()
        return cls(
            base_url=os.getenv("OPTIMIZER_BASE_URL", "http://localhost:8000"),
            max_retries=int(os.getenv("OPTIMIZER_MAX_RETRIES", "3")),
            retry_delay=float(os.getenv("OPTIMIZER_RETRY_DELAY", "1.0")),
            timeout=float(os.getenv("OPTIMIZER_TIMEOUT", "120")),
            heartbeat_interval=float(os.getenv("OPTIMIZER_HEARTBEAT_INTERVAL", "15")),
            cors_origins=_origins(os.getenv("CORS_ORIGINS")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def retry_policy(self):
        # imported here, the client package imports this module
        from .client.tracker import RetryPolicy
        return RetryPolicy.from_settings(self)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
