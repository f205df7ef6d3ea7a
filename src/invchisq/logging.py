from typing import Literal, Optional, get_args
import sys

from loguru._logger import Core as _Core, Logger as _Logger

LOG_LEVEL = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

LogFormat = (
    "<fg #B0BEC5>{time:YYYY-MM-DD HH:mm:ss.SSS}</fg #B0BEC5> | "
    "<level>{level: <8}</level> | "
    "<fg #2196F3>{name}</fg #2196F3>:"
    "<fg #03A9F4>{function}</fg #03A9F4>:"
    "<fg #009688>{line}</fg #009688> - "
    "<level>{message}</level>"
)

# Independent Loguru logger instance, so that configuring it never touches
# the global ``loguru.logger`` of the host application.
logger = _Logger(
    core=_Core(),
    exception=None,
    depth=0,
    record=False,
    lazy=False,
    colors=False,
    raw=False,
    capture=True,
    patchers=[],
    extra={},
)

# No default sink - added by set_log_level() / set_config(log_level=...)
_handler_id: Optional[int] = None


def set_log_level(level: LOG_LEVEL) -> None:
    """
    Change the log level of the invchisq logger.

    Args:
        level: Log level (TRACE, DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If an invalid log level is provided
    """
    global _handler_id

    # Literal is only checked statically
    valid_levels = tuple(get_args(LOG_LEVEL))
    if level not in valid_levels:
        raise ValueError(f"Invalid log_level '{level}'. Must be one of: {valid_levels}")

    if _handler_id is not None:
        try:
            logger.remove(_handler_id)
        except ValueError:
            # Handler was already removed
            pass

    _handler_id = logger.add(
        sink=sys.stderr,
        level=level,
        colorize=True,
        format=LogFormat,
    )
    logger.success(f"Log level set to {level}")


def disable_logging() -> None:
    """Remove the sink installed by `set_log_level`, if any."""
    global _handler_id

    if _handler_id is not None:
        try:
            logger.remove(_handler_id)
        except ValueError:
            pass
        _handler_id = None
