"""Core domain types and logic."""

from .config import ConfigError, DeployConfig, load_config, resolve_release_version
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ConfigError",
    "DeployConfig",
    "load_config",
    "resolve_release_version",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
