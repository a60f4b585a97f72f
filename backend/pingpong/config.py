import logging
import os

logger = logging.getLogger(__name__)


def _parse_positive_float(env_var, default):
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid number (got %r); defaulting to %s",
            env_var,
            raw_value,
            default,
        )
        return default

    if value <= 0:
        logger.warning("%s must be positive; defaulting to %s", env_var, default)
        return default

    return value


def _parse_positive_int(env_var, default):
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid integer (got %r); defaulting to %d",
            env_var,
            raw_value,
            default,
        )
        return default

    if value <= 0:
        logger.warning("%s must be positive; defaulting to %d", env_var, default)
        return default

    return value


def _split_origins(val):
    """
    Turn a comma-separated origin list into a clean list:
      - ignores blank entries and surrounding whitespace
      - returns [] when unset, which disables CORS
    """
    return [o.strip() for o in (val or "").split(",") if o.strip()]


# How long the ball may stay in the air before the expected side loses the point
BALL_AIR_TIME_SECONDS = _parse_positive_float("BALL_AIR_TIME_SECONDS", 30.0)
# Timeout ticker period
TICK_INTERVAL_SECONDS = _parse_positive_float("TICK_INTERVAL_SECONDS", 1.0)

PERSISTENCE_QUEUE_SIZE = _parse_positive_int("PERSISTENCE_QUEUE_SIZE", 64)
PERSISTENCE_FLUSH_TIMEOUT_SECONDS = _parse_positive_float(
    "PERSISTENCE_FLUSH_TIMEOUT_SECONDS", 5.0
)
TABLE_ID = _parse_positive_int("TABLE_ID", 1)

DATABASE_URL = (os.getenv("DATABASE_URL") or "").strip() or None

ALLOWED_ORIGINS = _split_origins(os.getenv("ALLOWED_ORIGINS"))

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = _parse_positive_int("SERVER_PORT", 3000)
