"""HTTP client abstraction for the GitHub API.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

from geode_release.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]

T = TypeVar("T")

GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network and payload errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the HTTP operations the publish pipeline needs."""

    def get_json(self, url: str) -> Result[object, HttpError]:
        """GET an authenticated API URL and decode the JSON body."""
        ...

    def post_json(self, url: str, payload: dict[str, Any]) -> Result[object, HttpError]:
        """POST a JSON body to an authenticated API URL and decode the reply."""
        ...

    def get_redirect(self, url: str) -> Result[str, HttpError]:
        """GET an authenticated API URL that answers with a redirect.

        Returns:
            Ok with the Location header; the redirect is not followed.
        """
        ...

    def download(self, url: str, dest: Path) -> Result[int, HttpError]:
        """Download an unauthenticated (pre-signed) URL to a file.

        Returns:
            Ok with the number of bytes written.
        """
        ...

    def upload(
        self, url: str, source: Path, *, content_type: str
    ) -> Result[object, HttpError]:
        """POST a file as the raw request body and decode the JSON reply."""
        ...


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[no-untyped-def]
        return None


class RealHttpClient:
    """Token-authenticated GitHub client using urllib.

    The token is only attached to API requests. Downloads of pre-signed
    artifact URLs go out without credentials.
    """

    def __init__(
        self,
        token: str,
        *,
        timeout: float = 60.0,
        upload_timeout: float = 300.0,
        user_agent: str = "geode-release",
    ) -> None:
        self._token = token
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()
        self._no_redirect = urllib.request.build_opener(
            _NoRedirect, urllib.request.HTTPSHandler(context=self._ssl_context)
        )

    def _api_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _send(
        self, req: urllib.request.Request, *, timeout: float
    ) -> Result[bytes, HttpError]:
        url = req.full_url
        try:
            with urllib.request.urlopen(
                req, timeout=timeout, context=self._ssl_context
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=_error_message(e)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[object, HttpError]:
        req = urllib.request.Request(url, headers=self._api_headers(), method="GET")
        result = self._send(req, timeout=self.timeout)
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def post_json(self, url: str, payload: dict[str, Any]) -> Result[object, HttpError]:
        headers = self._api_headers()
        headers["Content-Type"] = "application/json"
        body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(url, data=body, headers=headers, method="POST")
        result = self._send(req, timeout=self.timeout)
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def get_redirect(self, url: str) -> Result[str, HttpError]:
        req = urllib.request.Request(url, headers=self._api_headers(), method="GET")
        try:
            with self._no_redirect.open(req, timeout=self.timeout):
                pass
        except urllib.error.HTTPError as e:
            if e.code in (301, 302, 303, 307, 308):
                location = e.headers.get("Location")
                if location:
                    return Ok(location)
                return Err(HttpError(url=url, status=e.code, message="Redirect without Location"))
            return Err(HttpError(url=url, status=e.code, message=_error_message(e)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        return Err(HttpError(url=url, status=200, message="Expected a redirect"))

    def download(self, url: str, dest: Path) -> Result[int, HttpError]:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            with urllib.request.urlopen(
                req, timeout=self.timeout, context=self._ssl_context
            ) as response:
                written = 0
                chunk_size = 64 * 1024
                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)
                        written += len(chunk)
                return Ok(written)
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=e.reason))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def upload(
        self, url: str, source: Path, *, content_type: str
    ) -> Result[object, HttpError]:
        try:
            body = source.read_bytes()
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=f"cannot read {source}: {e}"))

        headers = self._api_headers()
        headers["Content-Type"] = content_type
        headers["Content-Length"] = str(len(body))
        req = urllib.request.Request(url, data=body, headers=headers, method="POST")
        result = self._send(req, timeout=self.upload_timeout)
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)


def _error_message(e: urllib.error.HTTPError) -> str:
    # GitHub puts the useful part in the JSON body ({"message": ...}).
    try:
        body: object = json.loads(e.read().decode("utf-8"))
    except (OSError, ValueError):
        return str(e.reason)
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return str(e.reason)


def _decode_json(url: str, raw: bytes) -> Result[object, HttpError]:
    if not raw:
        return Ok({})
    try:
        obj: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    return Ok(obj)


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by URL. Unknown URLs answer 404.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.github.com/repos/o/r/actions/artifacts", {...})
        result = client.get_json("https://api.github.com/repos/o/r/actions/artifacts")
    """

    def __init__(self) -> None:
        self._json: dict[str, object | HttpError] = {}
        self._post: dict[str, object | HttpError] = {}
        self._redirects: dict[str, str | HttpError] = {}
        self._downloads: dict[str, bytes | HttpError] = {}
        self._uploads: dict[str, object | HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.posted: list[tuple[str, dict[str, Any]]] = []
        self.uploaded: list[tuple[str, bytes, str]] = []

    def set_json(self, url: str, response: object | HttpError) -> None:
        self._json[url] = response

    def set_post(self, url: str, response: object | HttpError) -> None:
        self._post[url] = response

    def set_redirect(self, url: str, response: str | HttpError) -> None:
        self._redirects[url] = response

    def set_download(self, url: str, response: bytes | HttpError) -> None:
        self._downloads[url] = response

    def set_upload(self, url: str, response: object | HttpError) -> None:
        self._uploads[url] = response

    def _lookup(self, table: dict[str, T | HttpError], url: str) -> Result[T, HttpError]:
        if url not in table:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = table[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(self, url: str) -> Result[object, HttpError]:
        self.calls.append(("get_json", url))
        return self._lookup(self._json, url)

    def post_json(self, url: str, payload: dict[str, Any]) -> Result[object, HttpError]:
        self.calls.append(("post_json", url))
        self.posted.append((url, payload))
        return self._lookup(self._post, url)

    def get_redirect(self, url: str) -> Result[str, HttpError]:
        self.calls.append(("get_redirect", url))
        return self._lookup(self._redirects, url)

    def download(self, url: str, dest: Path) -> Result[int, HttpError]:
        self.calls.append(("download", url))
        result = self._lookup(self._downloads, url)
        if isinstance(result, Err):
            return result
        dest.write_bytes(result.value)
        return Ok(len(result.value))

    def upload(
        self, url: str, source: Path, *, content_type: str
    ) -> Result[object, HttpError]:
        self.calls.append(("upload", url))
        self.uploaded.append((url, source.read_bytes(), content_type))
        return self._lookup(self._uploads, url)
