import logging
from pathlib import Path

from cloudevent.config import get_settings


def get_logger(name: str, level=None) -> logging.Logger:
    """Get a named logger with standard formatting.

    Example:
        logger = get_logger(__name__)
        logger.debug("This is a debug message.")

    When ``level`` is omitted the level configured in the settings
    (``CLOUDEVENT_LOG_LEVEL``) is used.

    Returns:
        logging.Logger: Configured logger instance.
    """
    settings = get_settings()
    if level is None:
        level = logging.getLevelName(settings.log_level)
    logger = logging.getLogger(name)

    # avoid adding duplicate handlers if called repeatedly (common in tests)
    if logger.handlers:
        # still ensure level is set consistently
        logger.setLevel(level)
        return logger

    logs_dir = None
    if settings.log_dir is not None:
        logs_dir = Path(settings.log_dir)
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            # If we cannot create a log directory, fall back to streaming only
            logs_dir = None

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s     || %(name)s \n%(levelname)s   || %(message)s \n',
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    if logs_dir is not None:
        # create a file handler with explicit UTF-8 encoding
        filehandler = logging.FileHandler(str(logs_dir / f"{name}.log"), encoding="utf-8")
        filehandler.setFormatter(formatter)
        logger.addHandler(filehandler)

    logger.setLevel(level)
    logger.propagate = settings.log_propagate

    logger.debug("'%s' initialized with level %s", name, logging.getLevelName(level))
    return logger
