"""Error handling with friendly messages."""

from __future__ import annotations


class SkyfolioError(Exception):
    """Base exception for all skyfolio errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(SkyfolioError):
    """Configuration error."""

    pass


class WizardError(SkyfolioError):
    """Illegal wizard transition or invalid wizard definition."""

    pass


class AuthError(SkyfolioError):
    """Missing or rejected credential."""

    def __init__(self, message: str = "Please sign in again.") -> None:
        super().__init__(message, "Store a valid token in the configured token file")


class ValidationError(SkyfolioError):
    """Local, field-level validation failure. No request was sent."""

    def __init__(self, missing: list[str] | tuple[str, ...], message: str | None = None) -> None:
        self.missing = list(missing)
        if message is None:
            message = "Please complete all required fields: " + ", ".join(self.missing)
        super().__init__(message)


class NetworkError(SkyfolioError):
    """Transport failure: the request never produced a response."""

    pass


class ServerError(SkyfolioError):
    """Backend answered with a non-success status."""

    def __init__(self, message: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message)
