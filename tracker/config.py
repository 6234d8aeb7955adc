"""Configuration for the tracker.

Values come from environment variables with defaults relative to the
project root. Nothing here reads files.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    seed_path: Path
    store: str            # "memory" or "csv"
    log_level: str
    months: int           # default length of the monthly breakdown
    recent_limit: int


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    data_dir = Path(env.get("FINANCE_DATA_DIR", _PROJECT_ROOT / "data"))
    store = env.get("FINANCE_STORE", "memory").strip().lower()
    return Settings(
        data_dir=data_dir,
        seed_path=Path(env.get("FINANCE_SEED_PATH", data_dir / "seed.json")),
        store=store if store in ("memory", "csv") else "memory",
        log_level=env.get("FINANCE_LOG_LEVEL", "INFO").upper(),
        months=_int(env.get("FINANCE_MONTHS"), 6),
        recent_limit=_int(env.get("FINANCE_RECENT_LIMIT"), 5),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)


def users_path(settings: Settings) -> Path:
    return settings.data_dir / "users.csv"
