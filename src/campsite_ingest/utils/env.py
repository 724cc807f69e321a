"""Environment variable parsing for module-level settings."""
import logging
import os

logger = logging.getLogger(__name__)


def get_float_env(name: str, default: float) -> float:
    """Read a float setting from the environment.

    A missing or empty variable gives the default. An unparseable value is
    logged as an error and also gives the default.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.error(f"Invalid value {raw!r} for {name}, using default {default}")
        return default
