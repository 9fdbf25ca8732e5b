"""
Granite Backend Client

Async HTTP transport for the backend that executes SQL and talks to object
storage. Higher-level clients (SQLClient, StorageClient) share one
GraniteClient and never touch httpx directly.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .cancellation import CancellationToken
from .config import settings
from .exceptions import (
    BackendError,
    ConnectionError,
    GraniteError,
    NotFoundError,
    TimeoutError
)

logger = logging.getLogger(__name__)


def connection_path(section: str, connection_id: str, *parts: str) -> str:
    """Build /<section>/<connection_id>/<parts...> with the id escaped."""
    path = f"/{section}/{quote(str(connection_id), safe='')}"
    if parts:
        path += "/" + "/".join(parts)
    return path


class GraniteClient:
    """
    Asynchronous client for the Granite backend.

    Example:
        async with GraniteClient(url="http://localhost:7777") as client:
            sql = SQLClient(client)
            result = await sql.execute_sql("conn-1", "SELECT 1")
    """

    def __init__(
        self,
        url: str = None,
        timeout: float = None,
        verify_ssl: bool = None,
        headers: Dict[str, str] = None,
        transport: httpx.AsyncBaseTransport = None
    ):
        """
        Initialize the client.

        Args:
            url: Base URL of the backend (default: settings.url)
            timeout: Request timeout in seconds (default: settings.timeout)
            verify_ssl: Whether to verify SSL certificates
            headers: Extra headers sent with every request
            transport: Custom httpx transport (e.g. httpx.ASGITransport in tests)
        """
        self.url = (url or settings.url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout
        self.verify_ssl = verify_ssl if verify_ssl is not None else settings.verify_ssl
        self.headers = dict(headers or {})
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            headers.update(self.headers)

            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
                transport=self._transport
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        data: Dict[str, Any] = None,
        files: Dict[str, Any] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """Make an async HTTP request and return the decoded JSON body."""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"{method} {path}")

        client = self._get_client()
        url = f"{self.url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = await client.request(method, url, json=json, data=data, files=files)
        except httpx.ConnectError as e:
            raise ConnectionError(f"Failed to connect to {url}: {e}")
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out after {self.timeout}s: {e}")
        except httpx.HTTPError as e:
            raise GraniteError(f"Request failed: {e}")

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"{method} {path}")

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        """Handle HTTP response and raise appropriate errors."""
        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise BackendError(
                    "Backend returned a non-JSON response",
                    status_code=response.status_code,
                    details={"body": response.text[:500]}
                )

        message = None
        details = {}
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                details = error_data
                message = error_data.get("message")
        except ValueError:
            pass

        if not message:
            message = response.reason_phrase or f"HTTP {response.status_code}"

        logger.debug(f"Backend error {response.status_code}: {message}")

        if response.status_code == 404:
            raise NotFoundError(message, status_code=404, details=details)
        raise BackendError(message, status_code=response.status_code, details=details)

    async def post(
        self,
        path: str,
        json: Any = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """POST a JSON body."""
        return await self._request("POST", path, json=json, cancel_token=cancel_token)

    async def post_form(
        self,
        path: str,
        data: Dict[str, Any],
        files: Dict[str, Any],
        cancel_token: Optional[CancellationToken] = None
    ) -> Any:
        """POST a multipart form."""
        return await self._request("POST", path, data=data, files=files, cancel_token=cancel_token)

    async def close(self):
        """Close the client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
