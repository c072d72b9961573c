"""Key/value entries stored in workspaces."""

from __future__ import annotations

import secrets
from typing import Any
from urllib.parse import quote

from keyharbour.apierror import APIError, decode_json, expect_status
from keyharbour.models import CreateKeyValueRequest, KeyValue, UpdateKeyValueRequest
from keyharbour.transport import RawBody, Transport


def _segment(value: str) -> str:
    return quote(value, safe="$&+:=@")


def _escape_quotes(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _part(headers: list[str], payload: str) -> bytes:
    head = "".join(f"{header}\r\n" for header in headers)
    return (head + "\r\n").encode("utf-8") + payload.encode("utf-8")


def _field(name: str, value: str) -> bytes:
    return _part([f'Content-Disposition: form-data; name="{_escape_quotes(name)}"'], value)


def build_key_value_multipart_body(
    key: str,
    value: str,
    expires_at: str | None = None,
    private: bool | None = None,
    value_from_file: bool = False,
) -> RawBody:
    """Encode a key/value as a multipart/form-data body.

    The value goes in a "value_file" file part when value_from_file is set,
    otherwise in a plain "value" field. expires_at is sent only when
    non-empty and private only when given.
    """
    boundary = secrets.token_hex(30)
    parts: list[bytes] = []
    if key:
        parts.append(_field("key", key))
    if value_from_file:
        parts.append(
            _part(
                [
                    'Content-Disposition: form-data; name="value_file"; filename="value"',
                    "Content-Type: application/octet-stream",
                ],
                value,
            )
        )
    else:
        parts.append(_field("value", value))
    if expires_at:
        parts.append(_field("expires_at", expires_at))
    if private is not None:
        parts.append(_field("private", "true" if private else "false"))

    opener = f"--{boundary}\r\n".encode("ascii")
    separator = f"\r\n--{boundary}\r\n".encode("ascii")
    closer = f"\r\n--{boundary}--\r\n".encode("ascii")
    data = opener + separator.join(parts) + closer
    return RawBody(data, f"multipart/form-data; boundary={boundary}")


def _require_workspace(workspace_uuid: str) -> str:
    if not workspace_uuid:
        raise ValueError("workspace uuid is required")
    return f"/workspaces/{_segment(workspace_uuid)}/keyvalues"


class KeyValuesApi(Transport):
    """Operations on workspace key/value entries."""

    def list_key_values(self, workspace_uuid: str) -> list[KeyValue]:
        """Return all key/values of a workspace; a missing workspace gives an empty list."""
        path = _require_workspace(workspace_uuid)
        with self.request("GET", path) as response:
            if response.status_code == 404:
                return []
            expect_status("list keyvalues", response, 200)
            data: Any = decode_json(response)
            if data is None:
                return []
            if not isinstance(data, list):
                raise APIError(
                    response.status_code,
                    f"json decode error: expected a JSON array, got {type(data).__name__}",
                )
            try:
                return [KeyValue() if item is None else KeyValue.from_dict(item) for item in data]
            except (TypeError, ValueError) as exc:
                raise APIError(response.status_code, f"json decode error: {exc}") from exc

    def get_key_value(self, key: str) -> KeyValue:
        """Fetch one key/value by name, from either a JSON or a raw response body."""
        if not key:
            raise APIError(400, "key is required")
        path = f"/keyvalues/{_segment(key)}"
        with self.request("GET", path, headers={"Accept": "*/*"}) as response:
            expect_status("get keyvalue", response, 200)
            content_type = response.headers.get("Content-Type", "").lower()
            if "application/json" in content_type:
                data: Any = decode_json(response)
                try:
                    entry = KeyValue() if data is None else KeyValue.from_dict(data)
                except (TypeError, ValueError) as exc:
                    raise APIError(response.status_code, f"json decode error: {exc}") from exc
                entry.key = key
                entry.raw_value = entry.value.encode("utf-8")
                return entry
            raw = response.content or b""
        return KeyValue(key=key, value=raw.decode("utf-8", errors="replace"), raw_value=raw)

    def create_key_value(self, workspace_uuid: str, request: CreateKeyValueRequest) -> None:
        """Create a key/value entry in a workspace."""
        path = _require_workspace(workspace_uuid)
        body = build_key_value_multipart_body(
            request.key,
            request.payload,
            request.expires_at,
            request.private,
            request.payload_from_file,
        )
        with self.request("POST", path, body=body) as response:
            expect_status("create keyvalue", response, 201)

    def update_key_value(self, key: str, request: UpdateKeyValueRequest) -> None:
        """Update an existing key/value entry."""
        if not key:
            raise ValueError("key is required")
        body = build_key_value_multipart_body(
            key,
            request.payload,
            request.expires_at,
            request.private,
            request.payload_from_file,
        )
        with self.request("PATCH", f"/keyvalues/{_segment(key)}", body=body) as response:
            expect_status("update keyvalue", response, 202)

    def delete_key_value(self, key: str) -> None:
        """Remove a key/value entry."""
        if not key:
            raise ValueError("key is required")
        with self.request("DELETE", f"/keyvalues/{_segment(key)}") as response:
            expect_status("delete keyvalue", response, 204)