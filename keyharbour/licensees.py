"""Licensees attached to application instances."""

from __future__ import annotations

from keyharbour.apierror import APIError
from keyharbour.applications import _backfill, _fetch, _fetch_all, _segment, _send
from keyharbour.models import CreateLicenseeRequest, Licensee, UpdateLicenseeRequest
from keyharbour.transport import Transport


def _licensees_of(instance_uuid: str) -> str:
    if not instance_uuid:
        raise APIError(400, "instance uuid is required")
    return f"/license/instances/{_segment(instance_uuid)}/licensees"


def _licensee(uuid: str) -> str:
    if not uuid:
        raise APIError(400, "licensee uuid is required")
    return f"/license/licensees/{_segment(uuid)}"


class LicenseesApi(Transport):
    """Operations on the licensees of an instance."""

    def list_licensees(self, instance_uuid: str) -> list[Licensee]:
        """Return all licensees of an instance."""
        return _fetch_all(self, "list licensees", _licensees_of(instance_uuid), Licensee)

    def get_licensee(self, uuid: str) -> Licensee:
        """Return one licensee; its uuid is filled in from the request if absent."""
        path = _licensee(uuid)
        return _backfill(_fetch(self, "get licensee", path, Licensee), uuid)

    def create_licensee(self, instance_uuid: str, request: CreateLicenseeRequest) -> None:
        """Add a licensee to an instance."""
        _send(self, "create licensee", "POST", _licensees_of(instance_uuid), 201,
              body={"licensee": request.to_dict()})

    def update_licensee(self, uuid: str, request: UpdateLicenseeRequest) -> None:
        """Update an existing licensee."""
        _send(self, "update licensee", "PATCH", _licensee(uuid), 202,
              body={"licensee": request.to_dict()})

    def delete_licensee(self, uuid: str) -> None:
        """Remove a licensee."""
        _send(self, "delete licensee", "DELETE", _licensee(uuid), 204)