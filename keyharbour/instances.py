"""Instances of licence applications."""

from __future__ import annotations

from keyharbour.apierror import APIError
from keyharbour.applications import _backfill, _fetch, _fetch_all, _segment, _send
from keyharbour.models import CreateInstanceRequest, Instance, UpdateInstanceRequest
from keyharbour.transport import Transport


def _instances_of(application_uuid: str) -> str:
    if not application_uuid:
        raise APIError(400, "application uuid is required")
    return f"/license/applications/{_segment(application_uuid)}/instances"


def _instance(uuid: str) -> str:
    if not uuid:
        raise APIError(400, "instance uuid is required")
    return f"/license/instances/{_segment(uuid)}"


class InstancesApi(Transport):
    """Operations on application instances."""

    def list_instances(self, application_uuid: str) -> list[Instance]:
        """Return all instances of an application."""
        return _fetch_all(self, "list instances", _instances_of(application_uuid), Instance)

    def get_instance(self, uuid: str) -> Instance:
        """Return one instance; its uuid is filled in from the request if absent."""
        path = _instance(uuid)
        return _backfill(_fetch(self, "get instance", path, Instance), uuid)

    def create_instance(self, application_uuid: str, request: CreateInstanceRequest) -> Instance:
        """Create an instance under an application and return the created record."""
        return _fetch(
            self, "create instance", _instances_of(application_uuid), Instance,
            method="POST", allowed=201, body={"instance": request.to_dict()},
        )

    def update_instance(self, uuid: str, request: UpdateInstanceRequest) -> None:
        """Update an existing instance."""
        _send(self, "update instance", "PATCH", _instance(uuid), 202,
              body={"instance": request.to_dict()})

    def delete_instance(self, uuid: str) -> None:
        """Delete an instance."""
        _send(self, "delete instance", "DELETE", _instance(uuid), 204)