import logging
import os
from collections import OrderedDict
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog

from .settings import get_userhub_config

_KEY_ORDER = [
    "timestamp",
    "event",
    "service",
    "operation",
    "status",
    "duration_ms",
    "level",
    "logger",
]


def setup_logger(
    name: str = "userhub",
    *,
    log_dir: Optional[Path] = None,
    logger_level: Optional[int] = None,
    stream_level: Optional[int] = None,
    add_stream_handler: bool = True,
    file_mode: str = "a",
    propagate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    structlog_json: Optional[bool] = None,
    structlog_bind: Optional[dict] = None,
) -> structlog.stdlib.BoundLogger:
    """Configure and return a structlog logger backed by the stdlib logger ``name``.

    A console handler is always attached (unless disabled); a rotating file handler is attached
    when ``log_dir`` is given. Levels default to USERHUB.LOG_LEVEL.

    Args:
        name: Logger name, defaults to "userhub".
        log_dir: Directory for a rotating ``{name}.log`` file.
        logger_level: Overall logger level.
        stream_level: StreamHandler level.
        add_stream_handler: Whether to add a stream handler.
        file_mode: Mode for the file handler, default is 'a' (append).
        propagate: Whether the logger should propagate messages to ancestor loggers.
        max_bytes: Maximum size in bytes before rotating the log file.
        backup_count: Number of backup files to retain.
        structlog_json: Render JSON if True, console output otherwise. Defaults to USERHUB.LOG_JSON.
        structlog_bind: Fields bound on the returned logger.

    Returns:
        structlog.stdlib.BoundLogger: Configured logger instance.
    """
    cfg = get_userhub_config().USERHUB
    level = logging.getLevelName(str(cfg.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger_level = logger_level if logger_level is not None else level
    stream_level = stream_level if stream_level is not None else level
    structlog_json = cfg.LOG_JSON if structlog_json is None else structlog_json

    renderer = structlog.processors.JSONRenderer() if structlog_json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _enforce_key_order_processor(_KEY_ORDER),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    stdlib_logger = logging.getLogger(name)
    stdlib_logger.handlers.clear()
    stdlib_logger.setLevel(logger_level)
    stdlib_logger.propagate = propagate

    if add_stream_handler:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(stream_level)
        # structlog already rendered the line
        stream_handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(stream_handler)

    if log_dir:
        log_file_path = os.path.join(log_dir, f"{name}.log")
        os.makedirs(Path(log_file_path).parent, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_file_path, maxBytes=max_bytes, backupCount=backup_count, mode=file_mode
        )
        file_handler.setLevel(logger_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(file_handler)

    bound_logger = structlog.get_logger(name)
    if structlog_bind:
        bound_logger = bound_logger.bind(**structlog_bind)
    return bound_logger


def _enforce_key_order_processor(key_order: list[str]):
    def _processor(_logger, _method_name, event_dict):
        ordered = OrderedDict()
        for key in key_order:
            if key in event_dict:
                ordered[key] = event_dict.pop(key)
        for k in sorted(event_dict.keys()):
            ordered[k] = event_dict[k]
        return ordered

    return _processor


def get_logger(name: str | None = "userhub", **kwargs) -> structlog.stdlib.BoundLogger:
    """Create or retrieve a named logger under the ``userhub`` namespace.

    Example:
        .. code-block:: python

            from userhub.core.logging import get_logger

            logger = get_logger("users.repository")
            logger.info("user created", user_id="123")
    """
    if not name:
        name = "userhub"
    full_name = name if name.startswith("userhub") else f"userhub.{name}"
    kwargs.setdefault("propagate", False)
    return setup_logger(full_name, **kwargs)
