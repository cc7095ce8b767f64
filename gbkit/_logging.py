import logging
import sys

import structlog

_std_logger = logging.getLogger("gbkit")
if not _std_logger.handlers:
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _std_logger.addHandler(_handler)
_std_logger.setLevel(logging.INFO)

logger = structlog.wrap_logger(
    _std_logger,
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
)


def set_log_level(level) -> None:
    """Set the verbosity of `gbkit.logger`, e.g. "DEBUG", "INFO" or logging.WARNING"""
    _std_logger.setLevel(level)
