import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


_HANDLER_NAME = "dbls-file"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str, log_file: Path) -> Path:
    """Send the ``dbls`` loggers to a rotating file.

    The terminal belongs to the UI, so nothing goes to stdout or stderr.
    Calling this again replaces the handler installed by the previous call.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    package_logger = logging.getLogger("dbls")
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)
            handler.close()

    handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())
    package_logger.propagate = False
    return log_file
