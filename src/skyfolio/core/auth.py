"""Credential stores and the shared authenticated-user context."""

from __future__ import annotations

from pathlib import Path

from skyfolio.core.config import ConfigResolver
from skyfolio.core.errors import AuthError, ConfigError
from skyfolio.core.logging import get_logger
from skyfolio.core.transport import ApiClient

_logger = get_logger(__name__)


class StaticCredentials:
    """Token known up front (CLI flag, environment, tests)."""

    def __init__(self, token: str | None) -> None:
        self._token = token

    def get_token(self) -> str | None:
        return self._token


class TokenFileCredentials:
    """Token read from a file on every lookup, so a fresh sign-in is picked up."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def get_token(self) -> str | None:
        if not self.path.exists():
            return None
        token = self.path.read_text(encoding="utf-8").strip()
        return token or None


def credentials_from_config(resolver: ConfigResolver) -> StaticCredentials | TokenFileCredentials:
    """Pick the credential store: ``api.token`` wins over ``api.token_file``."""
    token = resolver.get("api.token")
    if token:
        return StaticCredentials(str(token))
    token_file = resolver.get("api.token_file")
    if not token_file:
        raise ConfigError("Neither 'api.token' nor 'api.token_file' is configured")
    return TokenFileCredentials(Path(str(token_file)).expanduser())


class AuthContext:
    """The current authenticated user, shared by every entity store.

    The user id is fetched from ``/user_id`` on first use and memoized for
    the lifetime of the context.
    """

    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self._user_id: int | str | None = None

    @property
    def cached_user_id(self) -> int | str | None:
        return self._user_id

    async def user_id(self) -> int | str:
        """Return the owning user id.

        Raises:
            AuthError: No credential, rejected credential, or no id in the reply
            NetworkError: Transport failure
            ServerError: Lookup failed on the backend
        """
        if self._user_id is not None:
            return self._user_id

        body = await self.api.get("/user_id")
        user_id = body.get("user_id") if isinstance(body, dict) else None
        if user_id is None:
            raise AuthError("Failed to authenticate user")
        _logger.debug(f"resolved user id {user_id}")
        self._user_id = user_id
        return user_id

    def invalidate(self) -> None:
        self._user_id = None
