# pulse/config/settings.py

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

# Expose BASE_DIR for other modules
BASE_DIR = Path(__file__).resolve().parents[2]
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)


@dataclass
class Settings:
    # Storage
    db_path: str = str(BASE_DIR / "pulse" / "data" / "pulse.db")

    # Scheduler timing
    check_interval_seconds: float = 15.0   # how often the scanner runs
    idle_threshold_ms: int = 300_000       # human silence before a proactive reply
    cooldown_seconds: float = 60.0         # guard release delay after an attempt

    # Prompt shaping
    history_window: int = 15               # trailing transcript messages sent to the model

    # Completion defaults (store values win when present)
    default_model: str = "gpt-4.1-mini"
    default_temperature: float = 0.9

    # HTTP
    http_timeout_seconds: float = 60.0


def _parse_float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
        # safeguard: enforce positive
        return value if value > 0 else default
    except ValueError:
        return default


def _parse_int_env(name: str, default: int, min_val: int = 0, max_val: int = 10) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
        # safeguard: clamp into sane range
        return max(min_val, min(max_val, value))
    except ValueError:
        return default


def load_settings() -> Settings:
    """
    Load scheduler configuration from environment variables (and defaults).
    Service credentials are NOT read here; they live in the key/value store.
    Ensures the DB directory exists.
    """
    default_db_path = BASE_DIR / "pulse" / "data" / "pulse.db"
    db_path_env = os.getenv("PULSE_DB_PATH", str(default_db_path)).strip() or str(default_db_path)
    db_path = Path(db_path_env)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    default_model = os.getenv("PULSE_DEFAULT_MODEL", "gpt-4.1-mini").strip() or "gpt-4.1-mini"

    return Settings(
        db_path=str(db_path),
        check_interval_seconds=_parse_float_env("PULSE_CHECK_INTERVAL_SECONDS", 15.0),
        idle_threshold_ms=_parse_int_env(
            "PULSE_IDLE_THRESHOLD_MS", 300_000, min_val=1, max_val=7 * 24 * 3600 * 1000
        ),
        cooldown_seconds=_parse_float_env("PULSE_COOLDOWN_SECONDS", 60.0),
        history_window=_parse_int_env("PULSE_HISTORY_WINDOW", 15, min_val=1, max_val=200),
        default_model=default_model,
        default_temperature=_parse_float_env("PULSE_DEFAULT_TEMPERATURE", 0.9),
        http_timeout_seconds=_parse_float_env("PULSE_HTTP_TIMEOUT_SECONDS", 60.0),
    )
