"""Configuration defaults and environment overrides."""

import os
from pathlib import Path

# Default data directory (repository-level ``data`` folder)
DATA_DIR = Path(__file__).parent.parent.parent / "data"

DEFAULT_SAVE_DEBOUNCE_SECONDS = 2.0
DEFAULT_GRACE_PERIOD = 2
MAX_GRACE_PERIOD = 3
DEFAULT_TARGET_SETS = 3
DEFAULT_TARGET_REPS = "8-12"
DEFAULT_REPS = 10

MAX_REPS = 999
MAX_WEIGHT = 9999


def get_data_dir() -> Path:
    """Data directory, overridable with ``SETPACE_DATA_DIR``."""
    override = os.environ.get("SETPACE_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return DATA_DIR


def get_save_debounce() -> float:
    """Debounce delay for background session writes (``SETPACE_SAVE_DEBOUNCE``)."""
    raw = os.environ.get("SETPACE_SAVE_DEBOUNCE")
    if raw is None:
        return DEFAULT_SAVE_DEBOUNCE_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_SAVE_DEBOUNCE_SECONDS
