import logging
import os

LOG_LEVEL_ENV = "TESSERA_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_PACKAGE = __name__.split(".")[0]


def _package_logger() -> logging.Logger:
    """The 'tessera' logger; owns the only stream handler."""
    package_logger = logging.getLogger(_PACKAGE)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    return package_logger


def resolve_level(name: str) -> int:
    """
    Level for a module logger: TESSERA_LOG_LEVEL when it names a real level,
    otherwise INFO for the CLI and WARNING for library modules.
    """
    default_level = logging.INFO if name.endswith(".cli") else logging.WARNING
    level = logging.getLevelName(os.getenv(LOG_LEVEL_ENV, "").strip().upper())
    return level if isinstance(level, int) else default_level


def get_logger(name: str) -> logging.Logger:
    _package_logger()
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(name))
    return logger
