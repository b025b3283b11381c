"""
Runtime configuration for brandclear.

Values come from the process environment; a `.env` file in the project root is
loaded first so local development does not need exported variables.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent
load_dotenv(ROOT_DIR / '.env')

DEFAULT_LLM_MODEL = "claude-sonnet-4-20250514"


def _env_int(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    anthropic_api_key: Optional[str] = None
    llm_model: str = DEFAULT_LLM_MODEL
    llm_max_tokens: int = 4096
    serper_api_key: Optional[str] = None
    rapidapi_key: Optional[str] = None
    godaddy_api_key: Optional[str] = None
    godaddy_api_secret: Optional[str] = None
    http_timeout_seconds: float = 15.0
    rdap_timeout_seconds: float = 5.0
    max_replacement_rounds: int = 3
    log_level: str = "INFO"
    cors_origins: str = "*"

    @property
    def has_llm(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_search(self) -> bool:
        return bool(self.serper_api_key)

    @property
    def has_trademark_search(self) -> bool:
        return bool(self.rapidapi_key)

    @property
    def has_domain_pricing(self) -> bool:
        return bool(self.godaddy_api_key and self.godaddy_api_secret)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        anthropic_api_key=os.environ.get('ANTHROPIC_API_KEY'),
        llm_model=os.environ.get('LLM_MODEL', DEFAULT_LLM_MODEL),
        llm_max_tokens=_env_int('LLM_MAX_TOKENS', 4096),
        serper_api_key=os.environ.get('SERPER_API_KEY'),
        rapidapi_key=os.environ.get('RAPIDAPI_KEY'),
        godaddy_api_key=os.environ.get('GODADDY_API_KEY'),
        godaddy_api_secret=os.environ.get('GODADDY_API_SECRET'),
        http_timeout_seconds=_env_float('HTTP_TIMEOUT_SECONDS', 15.0),
        rdap_timeout_seconds=_env_float('RDAP_TIMEOUT_SECONDS', 5.0),
        max_replacement_rounds=_env_int('MAX_REPLACEMENT_ROUNDS', 3),
        log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        cors_origins=os.environ.get('CORS_ORIGINS', '*'),
    )


def reset_settings_cache() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
