import logging
import sys

from combo_engine.settings import settings

QUIET_LOGGERS = ("httpx", "urllib3")


def configure_logging(level: str | None = None) -> logging.Logger:
    """
    Send all records to one stdout handler on the root logger and
    return the package logger. Calling it again replaces the handler.
    """
    level = (level or settings.LOG_LEVEL).upper()

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):  # pragma: no cover
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)

    package_logger = logging.getLogger("combo_engine")
    package_logger.setLevel(level)
    package_logger.propagate = True
    return package_logger


logger = configure_logging()
logger.debug(f"Logger initialised level={settings.LOG_LEVEL}")
