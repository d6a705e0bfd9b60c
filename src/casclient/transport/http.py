"""
casclient HTTP Transport

Outbound HTTP for the server-to-server ticket validation call and the
directory service lookup.

The CAS server is an untrusted, possibly unavailable peer. Every request
carries an explicit timeout, and failures are returned as
Failure(reason) rather than raised. There are no retries; retry policy
belongs to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import urlsplit

import attrs
import httpx
import structlog
from returns.result import Failure, Result, Success

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 10.0


class HttpTransport(ABC):
    """Minimal GET-only transport."""

    @abstractmethod
    def get(self, url: str) -> Result[str, str]:
        """
        Fetch url.

        Returns:
            Success(body) for a 2xx response
            Failure(reason) for any transport error or non-2xx status
        """
        ...


@attrs.define
class HttpxTransport(HttpTransport):
    """
    httpx-backed transport.

    Example:
        transport = HttpxTransport(timeout=5.0)
        result = transport.get("https://login.example.edu/cas/serviceValidate?...")

    An injected httpx.Client (e.g. one built on httpx.MockTransport) is
    used as-is and left open by close().
    """

    timeout: float = DEFAULT_TIMEOUT
    verify: bool = True
    _client: Optional[httpx.Client] = attrs.field(default=None, alias="client")
    _owns_client: bool = attrs.field(default=False, init=False)
    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, verify=self.verify)
            self._owns_client = True
        return self._client

    def get(self, url: str) -> Result[str, str]:
        try:
            response = self.client.get(url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._logger.warning(
                "http_request_failed",
                host=urlsplit(url).hostname,
                error_type=type(e).__name__,
                error=str(e),
            )
            return Failure(f"{type(e).__name__}: {e}")

        if not response.is_success:
            self._logger.warning(
                "http_status_error",
                host=response.url.host,
                status_code=response.status_code,
            )
            return Failure(f"HTTP {response.status_code}")

        return Success(response.text)

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
            self._owns_client = False
