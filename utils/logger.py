import logging
import sys

from config.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    # Leave an existing setup (uvicorn, pytest) alone
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(_resolve_level(settings.LOG_LEVEL))

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the shared handler on first use."""
    _configure_root()
    return logging.getLogger(name)
