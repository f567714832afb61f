"""
Async REST client for the business-administration backend.
Wraps a single aiohttp session and maps HTTP failures onto ApiError.
"""

import json
from typing import Any, Callable, Dict, Optional

import aiohttp

from ..config.settings import Settings, get_settings
from ..exceptions import ApiError, AuthenticationError
from ..logging_config import get_logger

logger = get_logger("admin_lookup.api")


class ApiClient:
    """Async client for the admin REST API."""

    SIGNIN_MARKERS = ("/auth/signin", "/signin")

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 30,
        on_unauthorized: Optional[Callable[[], None]] = None
    ):
        """
        Initialize the REST client.

        Args:
            base_url: Backend root, e.g. "http://localhost:5001"
            auth_token: Bearer token for authenticated endpoints
            timeout: Total request timeout in seconds
            on_unauthorized: Called when a non sign-in request gets 401/403
        """
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token or None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.on_unauthorized = on_unauthorized
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "ApiClient":
        """Build a client from the [api] settings section."""
        settings = settings or get_settings()
        return cls(
            base_url=settings.api.base_url,
            auth_token=settings.api.auth_token.get_secret_value(),
            timeout=settings.api.timeout_seconds,
            **kwargs
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _build_headers(self, headers: Optional[Dict[str, str]], has_body: bool, requires_auth: bool) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        if has_body:
            merged["Content-Type"] = "application/json"
        if requires_auth and self.auth_token:
            merged["Authorization"] = f"Bearer {self.auth_token}"
        if headers:
            merged.update(headers)
        return merged

    def handle_unauthorized(self) -> None:
        """Forget the session token and notify the owner."""
        self.auth_token = None
        if self.on_unauthorized is not None:
            self.on_unauthorized()

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        requires_auth: bool = True
    ) -> Any:
        """
        Send a request and decode the response.

        Args:
            endpoint: Path below base_url, e.g. "/api/customers"
            method: HTTP method
            data: JSON body (ignored for GET)
            params: Query string parameters
            headers: Extra headers, override the defaults
            requires_auth: Attach the bearer token when one is set

        Returns:
            Parsed JSON for JSON responses, text otherwise

        Raises:
            AuthenticationError: 401/403 responses
            ApiError: any other non-2xx response
        """
        method = method.upper()
        body = data if data is not None and method != "GET" else None
        request_headers = self._build_headers(headers, body is not None, requires_auth)
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url} | params={params}")

        session = self._get_session()
        async with session.request(
            method,
            url,
            params=params,
            json=body,
            headers=request_headers
        ) as response:
            if response.status in (401, 403):
                if any(marker in endpoint for marker in self.SIGNIN_MARKERS):
                    error_data = await self._read_error(response)
                    message = error_data.get("message") if isinstance(error_data, dict) else None
                    raise AuthenticationError(
                        message or "Invalid credentials",
                        status=response.status,
                        data=error_data
                    )
                self.handle_unauthorized()
                raise AuthenticationError("Authentication required", status=response.status)

            if response.status >= 400:
                text = await response.text()
                try:
                    parsed = json.loads(text)
                except ValueError:
                    parsed = {"error": text}
                raise ApiError(f"HTTP {response.status}: {text}", status=response.status, data=parsed)

            content_type = response.headers.get("Content-Type", "")
            if "application/json" in content_type:
                return await response.json()
            return await response.text()

    @staticmethod
    async def _read_error(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except (ValueError, aiohttp.ContentTypeError):
            return {}

    async def get(self, endpoint: str, **kwargs) -> Any:
        return await self.request(endpoint, method="GET", **kwargs)

    async def post(self, endpoint: str, data: Any, **kwargs) -> Any:
        return await self.request(endpoint, method="POST", data=data, **kwargs)

    async def put(self, endpoint: str, data: Any, **kwargs) -> Any:
        return await self.request(endpoint, method="PUT", data=data, **kwargs)

    async def patch(self, endpoint: str, data: Any, **kwargs) -> Any:
        return await self.request(endpoint, method="PATCH", data=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Any:
        return await self.request(endpoint, method="DELETE", **kwargs)
