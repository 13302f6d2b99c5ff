import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_URL = "https://empllo.com/api/v1"
DEFAULT_FETCH_LIMIT = 100
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_STORE = "data/store"


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the project root if present.

    Variables already set in the environment win over the file.
    """
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    fetch_limit: int = DEFAULT_FETCH_LIMIT
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    store_path: Path = Path(DEFAULT_STORE)

    @property
    def uses_sqlite(self) -> bool:
        return self.store_path.suffix == ".db"


def get_settings() -> Settings:
    """Read settings from the environment, falling back to defaults on bad values."""
    return Settings(
        api_url=os.getenv("JOBBOARD_API_URL", "").strip() or DEFAULT_API_URL,
        fetch_limit=_int_env("JOBBOARD_FETCH_LIMIT", DEFAULT_FETCH_LIMIT),
        timeout=_float_env("JOBBOARD_TIMEOUT", DEFAULT_TIMEOUT),
        max_retries=_int_env("JOBBOARD_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        store_path=Path(os.getenv("JOBBOARD_STORE", "").strip() or DEFAULT_STORE),
    )
