"""REST collaborator client.

Every backend call goes through ``ApiClient.request``. It attaches the
bearer credential, and turns every failure into one of three errors:

- AuthError: no credential available (no request is sent) or HTTP 401
- NetworkError: the transport raised before a response arrived
- ServerError: any other non-2xx status, carrying the server's ``error``
  message or a generic one
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from skyfolio.core.errors import AuthError, NetworkError, ServerError
from skyfolio.core.logging import get_logger

_logger = get_logger(__name__)


class CredentialStore(Protocol):
    """Source of the bearer token. Acquiring the token is someone else's job."""

    def get_token(self) -> str | None: ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error")
        if isinstance(message, str) and message:
            return message
    return f"Request failed with status {response.status_code}"


class ApiClient:
    """Thin async client for the observation backend."""

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize client.

        Args:
            base_url: API root, e.g. http://localhost:5000/api
            credentials: Bearer token source
            client: Optional preconfigured httpx client (tests inject one
                bound to an in-process transport)
        """
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        # No timeout: the transport's own behavior governs.
        self._client = client or httpx.AsyncClient(timeout=None)

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        data: Any = None,
        files: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """Issue one request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path below base_url
            json: JSON body for create/update calls
            params: Query parameters (None values are dropped)
            data: Form fields for multipart submissions
            files: Multipart file parts
            authenticated: Attach the bearer credential (reference lookups do not)

        Returns:
            Decoded JSON body, or None for empty bodies

        Raises:
            AuthError: No credential, or backend answered 401
            NetworkError: Transport failure
            ServerError: Non-success status
        """
        headers: dict[str, str] = {}
        if authenticated:
            token = self.credentials.get_token()
            if not token:
                raise AuthError()
            headers["Authorization"] = f"Bearer {token}"

        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}

        _logger.verbose(f"{method} {path}")
        try:
            response = await self._client.request(
                method,
                self.url(path),
                json=json,
                params=params or None,
                data=data,
                files=files,
                headers=headers,
            )
        except httpx.TransportError as e:
            _logger.warning(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise NetworkError(f"Network error: {e}") from e

        if response.status_code == 401:
            raise AuthError()
        if not response.is_success:
            message = _error_message(response)
            _logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise ServerError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
