"""Licence applications of the organisation, with the request helpers licence resources share."""

from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote

import requests

from keyharbour.apierror import APIError, decode_json, expect_status
from keyharbour.models import (
    Application,
    CreateApplicationRequest,
    JsonModel,
    UpdateApplicationRequest,
)
from keyharbour.transport import Transport

M = TypeVar("M", bound=JsonModel)

_BASE = "/license/applications"


def _segment(value: str) -> str:
    return quote(value, safe="$&+:=@")


def _decode_error(response: requests.Response, detail: object) -> APIError:
    return APIError(response.status_code, f"json decode error: {detail}")


def _decode_one(response: requests.Response, model: type[M]) -> M:
    data: Any = decode_json(response)
    if data is None:
        return model()
    try:
        return model.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise _decode_error(response, exc) from exc


def _decode_many(response: requests.Response, model: type[M]) -> list[M]:
    data: Any = decode_json(response)
    if data is None:
        return []
    if not isinstance(data, list):
        raise _decode_error(response, f"expected a JSON array, got {type(data).__name__}")
    try:
        return [model() if item is None else model.from_dict(item) for item in data]
    except (TypeError, ValueError) as exc:
        raise _decode_error(response, exc) from exc


def _send(api: Transport, op: str, method: str, path: str, allowed: int,
          body: Any = None) -> None:
    """Send a request whose reply carries nothing but its status."""
    with api.request(method, path, body=body) as response:
        expect_status(op, response, allowed)


def _fetch(api: Transport, op: str, path: str, model: type[M], *, method: str = "GET",
           allowed: int = 200, body: Any = None) -> M:
    """Send a request and decode one record from the reply."""
    with api.request(method, path, body=body) as response:
        expect_status(op, response, allowed)
        return _decode_one(response, model)


def _fetch_all(api: Transport, op: str, path: str, model: type[M]) -> list[M]:
    """GET a path and decode a list of records from the reply."""
    with api.request("GET", path) as response:
        expect_status(op, response, 200)
        return _decode_many(response, model)


def _backfill(record: Any, uuid: str) -> Any:
    """Fill in the record's uuid from the request when the reply left it out."""
    if not record.uuid:
        record.uuid = uuid
    return record


def _application(uuid: str) -> str:
    if not uuid:
        raise APIError(400, "application uuid is required")
    return f"{_BASE}/{_segment(uuid)}"


class ApplicationsApi(Transport):
    """Operations on licence applications."""

    def list_applications(self) -> list[Application]:
        """Return all applications for the organisation."""
        return _fetch_all(self, "list applications", _BASE, Application)

    def get_application(self, uuid: str) -> Application:
        """Return one application; its uuid is filled in from the request if absent."""
        path = _application(uuid)
        return _backfill(_fetch(self, "get application", path, Application), uuid)

    def create_application(self, request: CreateApplicationRequest) -> Application:
        """Create an application and return the created record."""
        return _fetch(
            self, "create application", _BASE, Application,
            method="POST", allowed=201, body={"application": request.to_dict()},
        )

    def update_application(self, uuid: str, request: UpdateApplicationRequest) -> None:
        """Update an existing application."""
        _send(self, "update application", "PATCH", _application(uuid), 202,
              body={"application": request.to_dict()})

    def delete_application(self, uuid: str) -> None:
        """Delete an application."""
        _send(self, "delete application", "DELETE", _application(uuid), 204)