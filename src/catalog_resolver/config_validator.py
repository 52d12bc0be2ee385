"""
Helpers that turn CATALOG_* environment strings into typed, range-checked
settings. Every failure raises ConfigurationError naming the variable.
"""
import os
import warnings
from typing import Optional

from .exceptions import ConfigurationError

# Values copied unedited from .env.example-style templates
PLACEHOLDER_MARKERS = ("your_", "placeholder", "replace", "changeme")


def get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read a string setting.

    :param key: Variable name
    :param default: Returned when unset or left as a template placeholder
    :return: Raw string value or default
    """
    raw = os.getenv(key)
    if raw is None:
        return default

    if _looks_like_placeholder(raw):
        warnings.warn(f"{key}={raw!r} looks like a template placeholder; ignoring it", UserWarning)
        return default

    return raw


def get_bool_env(key: str, default: bool) -> bool:
    value = get_optional_env(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_float_env(key: str, default: float) -> float:
    """
    Read a float setting.

    :raises: ConfigurationError if the value is not a number
    """
    value = get_optional_env(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {value!r}")


def get_int_env(key: str, default: int, minimum: int = 0) -> int:
    """
    Read an integer setting of at least ``minimum``.

    :raises: ConfigurationError if the value is not an integer or too small
    """
    value = get_optional_env(key)
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    if parsed < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {parsed}")
    return parsed


def validate_unit_interval(value: float, name: str) -> float:
    """
    Check that a score, weight or threshold lies in [0.0, 1.0].

    :raises: ConfigurationError if out of range
    """
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be between 0.0 and 1.0, got {value}")
    return value


def validate_path(path: str, setting: str, must_exist: bool = False) -> str:
    """
    Check a file setting such as the catalog CSV.

    :param path: Configured path
    :param setting: Variable name used in the error message
    :param must_exist: Require the file to exist now
    :raises: ConfigurationError if empty or missing
    """
    if not path:
        raise ConfigurationError(f"{setting} is empty")

    if must_exist and not os.path.exists(path):
        raise ConfigurationError(f"{setting} points to a missing file: {path}")

    return path


def _looks_like_placeholder(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)
