import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120 Safari/537.36"
)

@dataclass(frozen=True)
class Settings:
    UA: str = os.getenv("SB_UA", BROWSER_UA)
    HTTP_TIMEOUT_MS: int = int(os.getenv("SB_HTTP_TIMEOUT_MS", "5000"))
    TCP_TIMEOUT_MS: int = int(os.getenv("SB_TCP_TIMEOUT_MS", "5000"))
    CACHE_TTL_S: float = float(os.getenv("SB_CACHE_TTL_S", "60"))
    SLOW_THRESHOLD_MS: float = float(os.getenv("SB_SLOW_THRESHOLD_MS", "1500"))
    PROBE_ATTEMPTS: int = int(os.getenv("SB_PROBE_ATTEMPTS", "3"))
    MAX_CONCURRENCY: int = int(os.getenv("SB_MAX_CONCURRENCY", "1"))
    TARGETS_PATH: str = os.getenv("SB_TARGETS_PATH", "res/targets.yaml")
    RELOAD_TOKEN: str = os.getenv("SB_RELOAD_TOKEN", "change-me")

settings = Settings()
