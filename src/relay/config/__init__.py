"""Configuration module for the relay."""

from relay.config.profile import AIRequestProfile, ConfigLoadError, load_request_profile
from relay.config.settings import ConfigurationError, LogLevel, Settings, get_settings

__all__ = [
    "AIRequestProfile",
    "ConfigLoadError",
    "ConfigurationError",
    "LogLevel",
    "Settings",
    "get_settings",
    "load_request_profile",
]
