"""Team members of the organisation."""

from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote

import requests

from keyharbour.apierror import APIError, decode_json, expect_status
from keyharbour.models import (
    CreateTeamMemberRequest,
    JsonModel,
    TeamMember,
    UpdateTeamMemberRequest,
)
from keyharbour.transport import Transport

M = TypeVar("M", bound=JsonModel)

_BASE = "/license/team_members"


def _segment(value: str) -> str:
    return quote(value, safe="$&+:=@")


def _decode_one(response: requests.Response, model: type[M]) -> M:
    data: Any = decode_json(response)
    if data is None:
        return model()
    try:
        return model.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise APIError(response.status_code, f"json decode error: {exc}") from exc


def _decode_many(response: requests.Response, model: type[M]) -> list[M]:
    data: Any = decode_json(response)
    if data is None:
        return []
    if not isinstance(data, list):
        raise APIError(
            response.status_code,
            f"json decode error: expected a JSON array, got {type(data).__name__}",
        )
    try:
        return [model() if item is None else model.from_dict(item) for item in data]
    except (TypeError, ValueError) as exc:
        raise APIError(response.status_code, f"json decode error: {exc}") from exc


def _member(uuid: str) -> str:
    if not uuid:
        raise APIError(400, "team member uuid is required")
    return f"{_BASE}/{_segment(uuid)}"


class TeamMembersApi(Transport):
    """Operations on the organisation's team members."""

    def list_team_members(self) -> list[TeamMember]:
        """Return all team members."""
        with self.request("GET", _BASE) as response:
            expect_status("list team members", response, 200)
            return _decode_many(response, TeamMember)

    def get_team_member(self, uuid: str) -> TeamMember:
        """Return one team member; its uuid is filled in from the request if absent."""
        path = _member(uuid)
        with self.request("GET", path) as response:
            expect_status("get team member", response, 200)
            member = _decode_one(response, TeamMember)
        if not member.uuid:
            member.uuid = uuid
        return member

    def create_team_member(self, request: CreateTeamMemberRequest) -> None:
        """Add a team member."""
        body = {"team_member": request.to_dict()}
        with self.request("POST", _BASE, body=body) as response:
            expect_status("create team member", response, 201)

    def update_team_member(self, uuid: str, request: UpdateTeamMemberRequest) -> None:
        """Update an existing team member."""
        path = _member(uuid)
        body = {"team_member": request.to_dict()}
        with self.request("PATCH", path, body=body) as response:
            expect_status("update team member", response, 202)

    def delete_team_member(self, uuid: str) -> None:
        """Remove a team member."""
        path = _member(uuid)
        with self.request("DELETE", path) as response:
            expect_status("delete team member", response, 204)