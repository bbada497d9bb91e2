import logging
import logging.handlers
import multiprocessing as mp
from contextlib import contextmanager
from typing import Iterator, Optional

_LOGGER_NAME = "perturbzoom"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)

def level_from_name(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level

def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03dZ %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

def _reset(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = "perturbzoom.log",
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 3,
) -> logging.Logger:
    """Install console and rotating-file handlers on the package logger."""
    logger = get_logger()
    _reset(logger, level)
    handlers = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    fmt = _build_formatter()
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger

@contextmanager
def logging_session(*, level: int = logging.INFO, console: bool = True,
                    log_file: Optional[str] = None) -> Iterator[mp.Queue]:
    """Configure logging and yield a queue that band workers log into.

    Records put on the queue by worker processes are written by the
    parent's handlers until the session closes.
    """
    logger = configure_root_logging(level=level, console=console, log_file=log_file)
    queue = mp.Queue(-1)
    listener = logging.handlers.QueueListener(queue, *logger.handlers, respect_handler_level=True)
    listener.start()
    try:
        yield queue
    finally:
        listener.stop()

def logging_initialiser(queue: Optional[mp.Queue], level: int) -> None:
    # In-process renders keep the parent's handlers.
    if queue is None:
        return
    logger = get_logger()
    _reset(logger, level)
    qh = logging.handlers.QueueHandler(queue)
    qh.setLevel(level)
    logger.addHandler(qh)
