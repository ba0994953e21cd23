"""HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol for JSON GET requests (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from orch import __version__
from orch.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_auth(self) -> bool:
        return self.status in (401, 403)

    @property
    def is_transient(self) -> bool:
        """Network failures, rate limiting and 5xx are worth polling through."""
        return self.status == 0 or self.status == 429 or self.status >= 500


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations."""

    def get_json(self, url: str) -> Result[object, HttpError]:
        """Fetch URL and parse the body as JSON.

        Args:
            url: URL to fetch

        Returns:
            Ok with the decoded JSON value, or Err with HttpError
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Sends GitHub's recommended headers and, when a token is set, a bearer
    ``Authorization`` header.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        user_agent: str = f"truthdb-orchestrator/{__version__}",
    ) -> None:
        """Initialize HTTP client.

        Args:
            token: Bearer token; read-only scope is sufficient
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._token = token
        self._ssl_context = ssl.create_default_context()

    def _headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, url: str) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(url, headers=self._headers())
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[object, HttpError]:
        result = self._request(url)
        if isinstance(result, Err):
            return result

        try:
            data: object = json.loads(result.value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        return Ok(data)


class MockHttpClient:
    """Mock HTTP client for testing.

    Each URL maps to a queue of responses; the last response repeats once the
    queue is drained, which is how polling tests script a release that
    appears, grows and then settles.

    Usage:
        client = MockHttpClient()
        client.set_json(url, HttpError(url=url, status=404, message="Not Found"))
        client.add_json(url, {"assets": []})
    """

    def __init__(self) -> None:
        self._responses: dict[str, list[object | HttpError]] = {}
        self.calls: list[str] = []

    def set_json(self, url: str, response: object | HttpError) -> None:
        """Replace all responses for URL."""
        self._responses[url] = [response]

    def add_json(self, url: str, response: object | HttpError) -> None:
        """Queue another response for URL."""
        self._responses.setdefault(url, []).append(response)

    def get_json(self, url: str) -> Result[object, HttpError]:
        self.calls.append(url)

        queue = self._responses.get(url)
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
