"""Runtime configuration read from environment variables."""

import os

DEFAULT_TIMEZONE = "UTC"
DEFAULT_MAX_RETRIES = 3


def get_default_timezone() -> str:
    """Timezone given to new shops when none is supplied (SHOPLEDGER_DEFAULT_TIMEZONE)."""
    return os.environ.get("SHOPLEDGER_DEFAULT_TIMEZONE", DEFAULT_TIMEZONE)


def get_max_retries() -> int:
    """Attempts for writes that hit a concurrency conflict (SHOPLEDGER_MAX_RETRIES)."""
    raw = os.environ.get("SHOPLEDGER_MAX_RETRIES")
    if raw is None:
        return DEFAULT_MAX_RETRIES
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"SHOPLEDGER_MAX_RETRIES must be an integer, got '{raw}'")
    return max(1, value)
