"""Configuration management for the Air Quality Monitor notifier."""

from .duration import DurationParseError, format_duration, parse_duration
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AppConfig,
    DeliveryConfig,
    EmailConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PreferenceDefaults,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "DeliveryConfig",
    "PreferenceDefaults",
    "EmailConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Durations
    "parse_duration",
    "format_duration",
    "DurationParseError",
    # Exceptions
    "ConfigurationError",
]
