"""
Utility helpers for the ObservePoint console.
"""
import logging
import os

logger = logging.getLogger(__name__)

MASK_CHARACTER = '•'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def mask_api_key(api_key: str) -> str:
    """
    Mask an API key for display.

    The first and last four characters stay visible; keys of eight characters
    or fewer are returned unchanged since masking would hide nothing.

    Example:
        >>> mask_api_key("abcd1234efgh5678")
        'abcd••••••••5678'
    """
    if len(api_key) <= 8:
        return api_key
    return api_key[:4] + MASK_CHARACTER * (len(api_key) - 8) + api_key[-4:]


def is_masked(value: str) -> bool:
    """True if the value came from mask_api_key and is not a real key."""
    return MASK_CHARACTER in value


def configure_logging(level: str | None = None) -> None:
    """Install a stream handler on the root logger at LOG_LEVEL."""
    level_name = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    if not any(getattr(h, '_observepoint_console', False) for h in root_logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(log_level)
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        stream_handler._observepoint_console = True
        root_logger.addHandler(stream_handler)

    logger.debug(f"Logging configured at level {level_name}")
