"""Records exchanged with the KeyHarbour API and their JSON forms."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, TypeVar

M = TypeVar("M", bound="JsonModel")

_TIME_RE = re.compile(
    r"(\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})(\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)


def _parse_time(value: Any) -> datetime:
    match = _TIME_RE.fullmatch(value) if isinstance(value, str) else None
    if not match:
        raise TypeError(f"expected an RFC 3339 time, got {value!r}")
    clock, fraction, zone = match.groups()
    tz = timezone.utc
    if zone not in ("Z", "z"):
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    parsed = datetime.strptime(clock.upper(), "%Y-%m-%dT%H:%M:%S")
    micro = int((fraction[1:] + "000000")[:6]) if fraction else 0
    return parsed.replace(microsecond=micro, tzinfo=tz)


def _format_time(value: datetime) -> str:
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    total = int(value.utcoffset().total_seconds()) if value.utcoffset() else 0
    if not total:
        return text + "Z"
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def _expect(kind: Any, label: str) -> Callable[[Any], Any]:
    def decode(value: Any) -> Any:
        if isinstance(value, bool) != (kind is bool) or not isinstance(value, kind):
            raise TypeError(f"expected a JSON {label}, got {value!r}")
        return float(value) if label == "number" else value

    return decode


_STR = _expect(str, "string")
_INT = _expect(int, "integer")
_FLOAT = _expect((int, float), "number")
_BOOL = _expect(bool, "boolean")


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise TypeError(f"expected a JSON array, got {value!r}")
    return [_STR(item) for item in value]


def _j(name: str, decode: Callable[[Any], Any], default: Any = None, *,
       omit: bool = False, nullable: bool = False, factory: Any = None) -> Any:
    meta = {"json": name, "decode": decode, "omit": omit, "nullable": nullable}
    if factory is not None:
        return field(default_factory=factory, metadata=meta)
    return field(default=default, metadata=meta)


def _text(name: str, omit: bool = False) -> Any:
    return _j(name, _STR, "", omit=omit)


def _opt(name: str, decode: Callable[[Any], Any], omit: bool = True) -> Any:
    return _j(name, decode, None, omit=omit, nullable=True)


class JsonModel:
    """Base for records with a fixed JSON field mapping."""

    # When set, every field is left out of the JSON form while empty.
    _omit_empty: ClassVar[bool] = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form, leaving out empty optional fields."""
        out: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if "json" not in f.metadata:
                continue
            value = getattr(self, f.name)
            empty = value is None if f.metadata["nullable"] else not value
            if (f.metadata["omit"] or self._omit_empty) and empty:
                continue
            if isinstance(value, datetime):
                value = _format_time(value)
            out[f.metadata["json"]] = list(value) if isinstance(value, list) else value
        return out

    @classmethod
    def from_dict(cls: type[M], data: Mapping[str, Any]) -> M:
        """Build a record from a JSON object; unknown keys are ignored, null keeps the default,
        and keys match exactly or else ignoring case."""
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__}: expected a JSON object, got {type(data).__name__}")
        folded: dict[str, Any] = {}
        for key, value in data.items():
            folded.setdefault(str(key).lower(), value)
        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            name = f.metadata.get("json")
            if name is None:
                continue
            value = data[name] if name in data else folded.get(name.lower())
            if value is None:
                continue
            try:
                kwargs[f.name] = f.metadata["decode"](value)
            except TypeError as exc:
                raise TypeError(f"{cls.__name__}.{name}: {exc}") from None
        return cls(**kwargs)


@dataclass
class StateMeta(JsonModel):
    id: str = _text("id")
    project: str = _text("project")
    module: str = _text("module")
    workspace: str = _text("workspace")
    lineage: str = _text("lineage")
    serial: int = _j("serial", _INT, 0)
    size: int = _j("size", _INT, 0)
    checksum: str = _text("checksum")
    created_at: datetime | None = _opt("created_at", _parse_time, omit=False)


@dataclass
class ListStatesRequest(JsonModel):
    _omit_empty: ClassVar[bool] = True
    project: str = _text("project")
    module: str = _text("module")
    workspace: str = _text("workspace")


@dataclass
class CreateStatefileRequest(JsonModel):
    content: str = _text("content")


@dataclass
class Statefile(JsonModel):
    uuid: str = _text("uuid")
    content: str = _text("content")
    published_at: datetime | None = _opt("published_at", _parse_time, omit=False)
    environment: str = _text("environment", True)


@dataclass
class _Status(JsonModel):
    status: str = _text("status")


class StatefileCreatedResponse(_Status):
    """Acknowledgement returned when a statefile is stored."""


@dataclass
class CreateWorkspaceResponse(_Status):
    uuid: str = _text("uuid", True)


@dataclass
class _Identified(JsonModel):
    uuid: str = _text("uuid")


@dataclass
class _Described(_Identified):
    name: str = _text("name")
    description: str = _text("description", True)


class Workspace(_Described):
    """A workspace within a project."""


@dataclass
class Project(_Described):
    environments: list[str] = _j("environment_names", _str_list, omit=True, factory=list)


@dataclass
class CreateWorkspaceRequest(JsonModel):
    name: str = _text("name")
    description: str = _text("description")


class UpdateWorkspaceRequest(CreateWorkspaceRequest):
    """New name and description for a workspace."""


@dataclass
class KeyValue(JsonModel):
    key: str = _text("key")
    value: str = _text("value")
    raw_value: bytes = field(default=b"", repr=False)
    expires_at: str | None = _opt("expires_at", _STR, omit=False)
    private: bool = _j("private", _BOOL, False)
    environment: str = _text("environment", True)


@dataclass
class _Payload(JsonModel):
    payload: str = _text("value")
    payload_from_file: bool = False
    expires_at: str | None = _opt("expires_at", _STR)


@dataclass
class CreateKeyValueRequest(_Payload):
    key: str = _text("key")
    private: bool = _j("private", _BOOL, False, omit=True)


@dataclass
class UpdateKeyValueRequest(_Payload):
    private: bool | None = _opt("private", _BOOL)


@dataclass
class _Licensed(JsonModel):
    name: str = _text("name")
    short_name: str = _text("short_name")
    renewal_date: str = _text("renewal_date", True)
    seats: int | None = _opt("seats", _INT)
    unit_cost: float | None = _opt("unit_cost", _FLOAT)


@dataclass
class _ApplicationTerms(_Licensed):
    owner: str = _text("owner")
    vendor: str = _text("vendor")
    tier: str = _text("tier", True)


class CreateApplicationRequest(_ApplicationTerms):
    """Body for creating an application."""


@dataclass
class UpdateApplicationRequest(_ApplicationTerms):
    _omit_empty: ClassVar[bool] = True
    status: str = _text("status")


@dataclass
class Application(_ApplicationTerms):
    uuid: str = _text("uuid", True)
    status: str = _text("status", True)


@dataclass
class _InstanceTerms(_Licensed):
    owner: str = _text("owner", True)


class CreateInstanceRequest(_InstanceTerms):
    """Body for creating an instance."""


@dataclass
class UpdateInstanceRequest(_InstanceTerms):
    _omit_empty: ClassVar[bool] = True
    status: str = _text("status")


@dataclass
class Instance(_InstanceTerms):
    uuid: str = _text("uuid", True)
    status: str = _text("status", True)


@dataclass
class _LicenseeStatus(_Identified):
    status: str = _text("status", True)


class CreateLicenseeRequest(_Identified):
    """Body for adding a licensee."""


class UpdateLicenseeRequest(_LicenseeStatus):
    """Body for updating a licensee."""


@dataclass
class Licensee(_LicenseeStatus):
    name: str = _text("name", True)
    email: str = _text("email", True)


class CreateTeamMemberRequest(_Identified):
    """Body for adding a team member."""


@dataclass
class UpdateTeamMemberRequest(_Identified):
    manager_uuid: str = _text("manager_uuid")


@dataclass
class TeamMember(_Identified):
    manager_uuid: str | None = _opt("manager_uuid", _STR, omit=False)