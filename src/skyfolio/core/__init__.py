"""skyfolio core: configuration, logging, events, errors and transport."""

from skyfolio.core.auth import (
    AuthContext,
    StaticCredentials,
    TokenFileCredentials,
    credentials_from_config,
)
from skyfolio.core.config import ConfigResolver, ConfigSource
from skyfolio.core.errors import (
    AuthError,
    ConfigError,
    NetworkError,
    ServerError,
    SkyfolioError,
    ValidationError,
    WizardError,
)
from skyfolio.core.events import EventBus
from skyfolio.core.logging import VerbosityLevel, get_logger, set_colors, set_verbosity
from skyfolio.core.transport import ApiClient, CredentialStore

__all__ = [
    # Config
    "ConfigResolver",
    "ConfigSource",
    # Errors
    "SkyfolioError",
    "AuthError",
    "ConfigError",
    "NetworkError",
    "ServerError",
    "ValidationError",
    "WizardError",
    # Events
    "EventBus",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "set_verbosity",
    "set_colors",
    # Transport
    "ApiClient",
    "CredentialStore",
    "AuthContext",
    "StaticCredentials",
    "TokenFileCredentials",
    "credentials_from_config",
]
