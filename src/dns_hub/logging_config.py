"""
Logging setup for DNS Hub.

Everything the package logs goes to stderr and, optionally, to a log file.
Backend tokens and provider secrets are masked before a record is written.
"""

from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any, Final

    from dns_hub.config import LoggingConfig


LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Logger that reports config loading before setup_logging() runs
STARTUP_LOGGER: Final[str] = "dns_hub.config"

# Third-party loggers sharing our handlers, with their level
LIBRARY_LOGGERS: Final[dict[str, int]] = {"httpx": logging.WARNING}

# Names of credential-bearing fields (provider auth fields and the backend token)
_SECRET_KEYS: Final[str] = r"(?:token|secret|api[_-]?key|password|access[_-]?key[_-]?secret)"

# Visible prefix of a masked value
_KEEP: Final[int] = 6
_MASK: Final[str] = "******"


def _quoted_pair(quote: str) -> tuple[re.Pattern[str], str]:
    pattern = re.compile(
        rf"(\b{_SECRET_KEYS}={quote})(.{{0,{_KEEP}}})([^{quote}]*){quote}",
        re.IGNORECASE,
    )
    return pattern, rf"\1\2{_MASK}{quote}"


# (pattern, replacement) pairs; group 1 and 2 survive, the rest is masked
SENSITIVE_PATTERNS: Final[list[tuple[re.Pattern[str], str]]] = [
    (
        re.compile(rf"((?:Authorization:\s*)?Bearer\s+)(.{{0,{_KEEP}}})([^\s\"']*)", re.IGNORECASE),
        rf"\1\2{_MASK}",
    ),
    _quoted_pair('"'),
    _quoted_pair("'"),
    (
        re.compile(
            rf"(\b{_SECRET_KEYS}=)(?![\"'])([^\s,\"&']{{0,{_KEEP}}})([^\s,\"&']*)",
            re.IGNORECASE,
        ),
        rf"\1\2{_MASK}",
    ),
    (
        re.compile(rf'("{_SECRET_KEYS}"\s*:\s*")(.{{0,{_KEEP}}})([^"]*)"', re.IGNORECASE),
        rf'\1\2{_MASK}"',
    ),
]


def mask_secrets(text: str) -> str:
    """
    Mask every secret found in ``text``.

    Parameters
    ----------
    text : str
        A log message or argument.

    Returns
    -------
    str
        ``text`` with each secret cut to its first characters plus a mask.
    """
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _mask_value(value: Any) -> Any:
    return mask_secrets(value) if isinstance(value, str) else value


class SensitiveFilter(logging.Filter):
    """
    Masks secrets in the message, its arguments and selected ``extra`` fields.

    The record is always let through.
    """

    # ``extra`` attributes that may carry a URL or headers
    _SENSITIVE_DICT_KEYS: tuple[str, ...] = ("url", "headers")

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = mask_secrets(str(record.msg))

        if isinstance(record.args, dict):
            record.args = {k: _mask_value(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(_mask_value(a) for a in record.args)

        for key in self._SENSITIVE_DICT_KEYS:
            if key in record.__dict__:
                record.__dict__[key] = _mask_value(record.__dict__[key])

        return True


def _prepare(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveFilter())
    return handler


def _file_handler(config: LoggingConfig) -> logging.Handler:
    """
    Open the log file handler.

    ``WatchedFileHandler`` reopens the file when an external tool such as
    logrotate moves it.

    Raises
    ------
    OSError
        If the directory or the file cannot be created.
    """
    log_path = config.file_path_as_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.WatchedFileHandler(str(log_path), encoding="utf-8")


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Configure the ``dns_hub`` logger tree.

    Console output goes to stderr so it never mixes with command output on
    stdout. The startup logger ``STARTUP_LOGGER`` drops its own handler and
    follows the package logger from then on. The loggers in
    ``LIBRARY_LOGGERS`` reuse the same handlers at their own level; for
    ``httpx`` that hides the per-request lines, which carry credential ids,
    unless something fails.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration. An unknown level falls back to WARNING.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    logger = logging.getLogger("dns_hub")
    logger.setLevel(getattr(logging, config.level.upper(), logging.WARNING))
    logger.handlers.clear()
    logger.addHandler(_prepare(logging.StreamHandler(sys.stderr)))
    logger.propagate = False

    if config.file_enabled:
        try:
            logger.addHandler(_prepare(_file_handler(config)))
        except OSError as e:
            logger.critical("Failed to enable file logging: %s", e)
            sys.exit(1)
        logger.info('File logging enabled: "%s".', config.file_path_as_path)

    # From here on the startup logger follows the package level and handlers
    startup_logger = logging.getLogger(STARTUP_LOGGER)
    startup_logger.handlers.clear()
    startup_logger.setLevel(logging.NOTSET)
    startup_logger.propagate = True

    for name, level in LIBRARY_LOGGERS.items():
        library_logger = logging.getLogger(name)
        library_logger.setLevel(level)
        library_logger.handlers = list(logger.handlers)
        library_logger.propagate = False

    return logger
