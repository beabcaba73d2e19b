"""
Settings for the DNS Hub command line.

Values come from three layers, each overriding the one before it: the field
defaults below, a TOML file, and command-line options.
"""

from __future__ import annotations

import argparse
import copy
import logging
import sys
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from dns_hub.logging_config import DATE_FORMAT, LOG_FORMAT
from dns_hub.pagination import MAX_PAGES, RECORDS_PAGE_SIZE, ZONES_PAGE_SIZE
from dns_hub.preferences import MIN_PAGE_SIZE
from dns_hub.transport import HTTP_TIMEOUT

if TYPE_CHECKING:
    from typing import Any, Final

# Used until setup_logging() takes over the "dns_hub" logger.
logger_basic = logging.getLogger(__name__)
logger_basic.setLevel(logging.DEBUG)
_startup_handler = logging.StreamHandler()
_startup_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
logger_basic.addHandler(_startup_handler)
logger_basic.propagate = False

DEFAULT_CONFIG_PATHS: Final[tuple[Path, ...]] = (
    Path("config.toml"),
    Path("~/.config/dns-hub/config.toml"),
)

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# pydantic error type -> the Python type the field wanted
_EXPECTED_TYPES: Final[dict[str, str]] = {
    "int_type": "int",
    "int_parsing": "int",
    "float_type": "float",
    "float_parsing": "float",
    "bool_type": "bool",
    "bool_parsing": "bool",
    "string_type": "str",
}

# Bound violations already say what the bound is
_BOUND_ERRORS: Final[frozenset[str]] = frozenset({"greater_than", "greater_than_equal"})


class ConfigValidationError(Exception):
    """
    The merged settings did not validate.

    Attributes
    ----------
    config_path : Path | None
        File the settings were read from, if any.
    """

    def __init__(self, message: str, config_path: Path | None = None) -> None:
        self.config_path = config_path
        super().__init__(message)


class BackendConfig(BaseModel):
    """Where the DNS backend lives and how to reach it."""

    base_url: str = "http://127.0.0.1:3000/api"
    token: str | None = None
    timeout: float = Field(default=HTTP_TIMEOUT, gt=0)

    @field_validator("base_url")
    @classmethod
    def check_base_url_scheme(cls, value: str) -> str:
        if value.startswith(("http://", "https://")):
            return value
        raise PydanticCustomError(
            "backend_config_error",
            "Backend base URL must start with http:// or https://",
        )


class PagingConfig(BaseModel):
    """
    Page sizes and the page ceiling used when draining listings.

    Attributes
    ----------
    records_page_size : int
        Records requested per page.
    zones_page_size : int
        Zones requested per page.
    max_pages : int
        Listings stop after this many pages.
    """

    records_page_size: int = Field(default=RECORDS_PAGE_SIZE, gt=0)
    zones_page_size: int = Field(default=ZONES_PAGE_SIZE, gt=0)
    max_pages: int = Field(default=MAX_PAGES, gt=0)


class PreferencesConfig(BaseModel):
    """Location of the persisted selection and the default table size."""

    path: str = "~/.config/dns-hub/preferences.json"
    page_size: int = Field(default=MIN_PAGE_SIZE, ge=MIN_PAGE_SIZE)

    @property
    def path_as_path(self) -> Path:
        return Path(self.path)


class LoggingConfig(BaseModel):
    """
    Log verbosity and the optional log file.

    Attributes
    ----------
    level : str
        Name of a ``logging`` level. Unknown names mean WARNING.
    file_enabled : bool
        Also write records to ``file_path``.
    file_path : str
        Log file location.
    """

    level: str = "WARNING"
    file_enabled: bool = False
    file_path: str = "~/.local/state/dns-hub/dns-hub.log"

    @property
    def file_path_as_path(self) -> Path:
        return Path(self.file_path)


class Config(BaseModel):
    """All settings, one section per table of the TOML file."""

    backend: BackendConfig = BackendConfig()
    paging: PagingConfig = PagingConfig()
    preferences: PreferencesConfig = PreferencesConfig()
    logging: LoggingConfig = LoggingConfig()


def _describe_error(err: dict[str, Any]) -> str:
    where = ".".join(str(part) for part in err["loc"])
    value = err["input"]
    shown = f'"{value}"' if isinstance(value, str) else repr(value)

    if err["type"] == "backend_config_error":
        return f"  [{where}]: {err['msg']} (got {shown})."
    if err["type"] in _BOUND_ERRORS:
        return f"  [{where}]: {err['msg']} (value: {shown})."

    wanted = _EXPECTED_TYPES.get(err["type"], err["type"])
    return f"  [{where}]: Expected {wanted}, got {type(value).__name__} (value: {shown}). {err['msg']}."


def _format_validation_errors(error: ValidationError, config_path: Path | None) -> str:
    """
    Render every validation failure on its own line.

    Parameters
    ----------
    error : ValidationError
        What pydantic rejected.
    config_path : Path | None
        Named in the heading when the settings came from a file.

    Returns
    -------
    str
        A heading followed by one indented line per failing field.
    """
    heading = f'Configuration error in "{config_path}":' if config_path else "Configuration error:"
    return "\n".join([heading, *(_describe_error(err) for err in error.errors())])


def validate_config_dict(data: dict[str, Any], config_path: Path | None = None) -> None:
    """
    Check raw settings without building a ``Config``.

    Raises
    ------
    ConfigValidationError
        With one line per invalid field.
    """
    try:
        Config.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(_format_validation_errors(e, config_path), config_path) from e


def load_config_from_file(config_path: Path) -> dict[str, Any]:
    """
    Parse a TOML settings file.

    Raises
    ------
    FileNotFoundError
        If ``config_path`` does not exist.
    tomllib.TOMLDecodeError
        If the file is not valid TOML.
    """
    with config_path.open("rb") as f:
        return tomllib.load(f)


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay ``override`` on a copy of ``base``.

    Nested tables merge key by key; any other value in ``override`` replaces
    the one in ``base``. Neither input is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


def dict_to_config(data: dict[str, Any]) -> Config:
    """Build a ``Config``, expanding ``~`` in the file paths it names."""
    config = Config.model_validate(data)
    preferences = config.preferences.model_copy(
        update={"path": str(config.preferences.path_as_path.expanduser())},
    )
    log_settings = config.logging.model_copy(
        update={"file_path": str(config.logging.file_path_as_path.expanduser())},
    )
    return config.model_copy(update={"preferences": preferences, "logging": log_settings})


# (flag, section, key, extra add_argument options); every option defaults to None
_OPTIONS: Final[tuple[tuple[str, str, str, dict[str, Any]], ...]] = (
    ("--base-url", "backend", "base_url", {"type": str, "help": "Base URL of the backend API"}),
    ("--token", "backend", "token", {"type": str, "help": "Bearer token for the backend API"}),
    ("--timeout", "backend", "timeout", {"type": float, "help": "Request timeout in seconds"}),
    ("--records-page-size", "paging", "records_page_size", {"type": int, "help": "Records requested per page"}),
    ("--zones-page-size", "paging", "zones_page_size", {"type": int, "help": "Zones requested per page"}),
    ("--max-pages", "paging", "max_pages", {"type": int, "help": "Stop a listing after this many pages"}),
    ("--preferences-path", "preferences", "path", {"type": Path, "help": "Where the selection is saved"}),
    ("--log-level", "logging", "level", {"type": str, "choices": LOG_LEVELS, "help": "Log level"}),
    ("--log-file-path", "logging", "file_path", {"type": Path, "help": "Log file location"}),
)


def _dest(flag: str) -> str:
    return flag.removeprefix("--").replace("-", "_")


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Register the options that override settings from the file.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        Usually the top-level parser of the command line.
    """
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: ./config.toml, then ~/.config/dns-hub/config.toml)",
    )
    for flag, _section, _key, options in _OPTIONS:
        parser.add_argument(flag, dest=_dest(flag), default=None, **options)

    # Tri-state: absent keeps the file's value
    log_file = parser.add_mutually_exclusive_group()
    log_file.add_argument(
        "--log-file-enabled",
        dest="log_file_enabled",
        action="store_true",
        default=None,
        help="Also log to the log file",
    )
    log_file.add_argument(
        "--log-file-disabled",
        dest="log_file_enabled",
        action="store_false",
        default=None,
        help="Do not log to a file",
    )


def _find_config_path(explicit: Path | None) -> Path | None:
    if explicit is not None:
        return explicit.expanduser()
    return next(
        (path for path in (c.expanduser() for c in DEFAULT_CONFIG_PATHS) if path.exists()),
        None,
    )


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    given = [
        (section, key, getattr(args, _dest(flag), None))
        for flag, section, key, _options in _OPTIONS
    ]
    given.append(("logging", "file_enabled", getattr(args, "log_file_enabled", None)))

    overrides: dict[str, Any] = {}
    for section, key, value in given:
        if value is None:
            continue
        overrides.setdefault(section, {})[key] = str(value) if isinstance(value, Path) else value
    return overrides


def load_config(args: argparse.Namespace | None = None) -> Config:
    """
    Resolve the effective settings.

    The file is ``--config`` when given, else the first existing entry of
    ``DEFAULT_CONFIG_PATHS``; with neither, only defaults and options apply.
    A named file that is missing or not valid TOML ends the process.

    Parameters
    ----------
    args : argparse.Namespace | None, optional
        Parsed options. Attributes the namespace lacks count as not given.

    Returns
    -------
    Config
        Settings with ``~`` expanded in file paths.

    Raises
    ------
    ConfigValidationError
        If the merged settings are invalid.
    """
    args = args or argparse.Namespace()
    config_path = _find_config_path(getattr(args, "config", None))

    from_file: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            logger_basic.critical('Configuration file not found: "%s".', config_path)
            sys.exit(1)
        logger_basic.debug('Loading configuration from "%s".', config_path)
        try:
            from_file = load_config_from_file(config_path)
        except tomllib.TOMLDecodeError as e:
            logger_basic.critical('Failed to parse configuration file "%s": %s', config_path, e)
            sys.exit(1)

    merged = merge_config(from_file, _cli_overrides(args))
    validate_config_dict(merged, config_path)
    return dict_to_config(merged)
