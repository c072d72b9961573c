"""Errors reported by the KeyHarbour API and decoding of its responses."""

from __future__ import annotations

import json
from typing import Any

import requests

_ERROR_READ_LIMIT = 8192
_SAMPLE_READ_LIMIT = 4096
_DECODE_CONTEXT_LIMIT = 1024
_SNIPPET_LIMIT = 300
_JSON_WHITESPACE = " \t\r\n"


class APIError(Exception):
    """An error status, or an unusable body, returned by the API."""

    def __init__(self, status_code: int, message: str = "", body: str = "", op: str = "") -> None:
        super().__init__(status_code, message, body)
        self.status_code = status_code
        self.message = message
        self.body = body
        self.op = op

    def __str__(self) -> str:
        if self.message:
            text = f"api error ({self.status_code}): {self.message}"
        elif self.body:
            text = f"api error ({self.status_code}): {self.body}"
        else:
            text = f"api error ({self.status_code})"
        return f"{self.op}: {text}" if self.op else text

    def __repr__(self) -> str:
        return (
            f"APIError(status_code={self.status_code!r}, message={self.message!r}, "
            f"body={self.body!r}, op={self.op!r})"
        )


def _content(response: requests.Response) -> bytes:
    return response.content or b""


def _snippet(data: bytes | str) -> str:
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    text = text.strip()
    if len(text) > _SNIPPET_LIMIT:
        text = text[:_SNIPPET_LIMIT] + "... (truncated)"
    return text


def _str_field(payload: dict[str, Any], name: str) -> str:
    value = payload.get(name)
    return value if isinstance(value, str) else ""


def _str_list_field(payload: dict[str, Any], name: str) -> list[str]:
    value = payload.get(name)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def parse_api_error(response: requests.Response) -> APIError:
    """Build an APIError from an error response, taking the most useful message."""
    data = _content(response)[:_ERROR_READ_LIMIT]
    payload: dict[str, Any] = {}
    if data:
        try:
            decoded = json.loads(data.decode("utf-8", errors="replace"))
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            payload = decoded

    message = (
        _str_field(payload, "message")
        or _str_field(payload, "error")
        or _str_field(payload, "detail")
    )
    errors = _str_list_field(payload, "errors")
    if errors:
        message = "; ".join(errors)
    if response.status_code == 422 and not message:
        if _str_field(payload, "status") == "unprocessable_entity":
            message = "validation failed"

    return APIError(response.status_code, message, _snippet(data))


def expect_status(op: str, response: requests.Response, *args: int) -> None:
    """Raise an APIError tagged with op unless the response status is one of args."""
    if response.status_code in args:
        return
    error = parse_api_error(response)
    error.op = op
    raise error


def decode_json(response: requests.Response) -> Any:
    """Decode the first JSON value of a response body.

    Raises APIError when the content type is not JSON or the body does not parse.
    """
    content_type = response.headers.get("Content-Type", "")
    if content_type and "json" not in content_type:
        sample = _content(response)[:_SAMPLE_READ_LIMIT]
        raise APIError(
            response.status_code,
            f"unexpected content-type {content_type}",
            _snippet(sample),
        )
    text = _content(response).decode("utf-8", errors="replace")
    try:
        value, _ = json.JSONDecoder().raw_decode(text.lstrip(_JSON_WHITESPACE))
    except json.JSONDecodeError as exc:
        raise APIError(
            response.status_code,
            f"json decode error: {exc}",
            _snippet(text[:_DECODE_CONTEXT_LIMIT]),
        ) from exc
    return value