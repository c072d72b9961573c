"""HTTP transport for the KeyHarbour API with retries and authentication."""

from __future__ import annotations

import json
import posixpath
import random
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote, urlencode, urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict

from keyharbour import debuglog

DEFAULT_RETRY_COUNT = 2
DEFAULT_RETRY_WAIT = 0.2
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class RawBody:
    """A request body sent as-is with its own content type."""

    data: bytes
    content_type: str = ""


def _json_default(value: Any) -> Any:
    if callable(getattr(value, "to_dict", None)):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _join_path(base: str, path: str) -> str:
    elements = [element for element in (base, path) if element]
    if not elements:
        return ""
    cleaned = posixpath.normpath("/".join(elements))
    return "/" + cleaned.lstrip("/") if cleaned.startswith("//") else cleaned


def should_retry_error(exc: BaseException | None) -> bool:
    """Report whether a transport failure is worth retrying (timeouts only)."""
    return isinstance(exc, (requests.Timeout, TimeoutError))


def should_retry_status(code: int) -> bool:
    """Report whether a response status is temporary and worth retrying."""
    return code in (429, 408) or (code >= 500 and code != 501)


class Transport:
    """Sends requests to a KeyHarbour endpoint, retrying temporary failures."""

    def __init__(self, endpoint: str, token: str = "", org: str = "", insecure_tls: bool = False,
                 retries: int = DEFAULT_RETRY_COUNT, retry_wait: float = DEFAULT_RETRY_WAIT,
                 timeout: float = DEFAULT_TIMEOUT) -> None:
        self.endpoint = endpoint
        self.token = token
        self.org = org
        self.retries = retries
        self.retry_wait = retry_wait
        self.timeout = timeout
        self.session = requests.Session()
        self.session.verify = not insecure_tls

    def _prepare(self, path: str, params: Mapping[str, str] | None,
                 body: Any) -> tuple[str, bytes | None, CaseInsensitiveDict]:
        if not self.endpoint:
            raise ValueError("missing endpoint in config")
        parts = urlsplit(self.endpoint)
        joined = quote(_join_path(unquote(parts.path), path), safe="$&+,/:;=@")
        query = urlencode(sorted(params.items())) if params else ""
        url = urlunsplit((parts.scheme, parts.netloc, joined, query, parts.fragment))
        headers: CaseInsensitiveDict = CaseInsensitiveDict()
        data: bytes | None = None
        if isinstance(body, RawBody):
            data = body.data
            if body.content_type:
                headers["Content-Type"] = body.content_type
        elif body is not None:
            data = json.dumps(body, separators=(",", ":"), ensure_ascii=False,
                              default=_json_default).encode("utf-8")
            headers["Content-Type"] = "application/json"
        headers["Accept"] = "application/json"
        if self.token:
            headers["Authorization"] = "Bearer " + self.token
        if self.org:
            headers["X-Org"] = self.org
        return url, data, headers

    def request(self, method: str, path: str, params: Mapping[str, str] | None = None,
                body: Any = None, headers: Mapping[str, str] | None = None) -> requests.Response:
        """Send a request, retrying temporary failures.

        Raises the last transport error, or requests.HTTPError for a status
        that stayed temporary through every attempt.
        """
        attempts = self.retries + 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            final = attempt == attempts - 1
            url, data, request_headers = self._prepare(path, params, body)
            request_headers.update({k: v for k, v in (headers or {}).items() if v})
            debuglog.debugf("HTTP %s %s", method, url)
            try:
                response = self.session.request(method, url, data=data,
                                                headers=request_headers, timeout=self.timeout)
            except requests.RequestException as exc:
                last_error = exc
                if final or not should_retry_error(exc):
                    raise
                time.sleep(self.retry_delay(attempt))
                continue
            debuglog.debugf("HTTP status %d for %s %s", response.status_code, method, url)
            if not should_retry_status(response.status_code):
                return response
            last_error = requests.HTTPError(
                f"temporary status: {response.status_code} {response.reason}", response=response
            )
            response.close()
            if final:
                raise last_error
            time.sleep(self.retry_delay(attempt))
        raise last_error or requests.RequestException("request failed after retries")

    def retry_delay(self, attempt: int) -> float:
        """Seconds before the next attempt: exponential backoff with ±20% jitter."""
        base = (1 << attempt) * (self.retry_wait if self.retry_wait > 0 else DEFAULT_RETRY_WAIT)
        return base + random.uniform(-base / 5, base / 5)