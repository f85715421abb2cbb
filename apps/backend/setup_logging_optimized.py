import logging
import os

from config.logging_config import apply_logging_config, get_logging_config


def setup_logging(level: str = None) -> None:
    """Logging setup shared by the server, the agent and the tests.

    - Applies the environment profile from config.logging_config once
    - LOG_LEVEL (or the explicit level argument) overrides the profile level
    """
    root = logging.getLogger()
    if not root.handlers:
        apply_logging_config(get_logging_config())
    level = level or os.getenv("LOG_LEVEL")
    if level:
        try:
            root.setLevel(getattr(logging, level.upper()))
        except AttributeError:
            root.setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger after ensuring logging is initialized."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)
