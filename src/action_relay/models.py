"""
Typed views of the records and responses exchanged with Salesforce.

Every ``from_json`` constructor checks the fields it relies on and raises
``ResponseShapeError`` rather than handing partially decoded data onward.
"""

from typing import Any, NamedTuple, TypedDict

from .exceptions import ResponseShapeError

_MISSING = object()


def _require(data: Any, key: str, type_name: str, expected: type | tuple[type, ...]):
    if not isinstance(data, dict):
        raise ResponseShapeError(type_name, f"expected an object, got {type(data).__name__}")
    value = data.get(key, _MISSING)
    if value is _MISSING:
        raise ResponseShapeError(type_name, f"missing '{key}'")
    if not isinstance(value, expected):
        raise ResponseShapeError(
            type_name, f"'{key}' has type {type(value).__name__}"
        )
    return value


class QueryResultJSON(TypedDict, total=False):
    totalSize: int
    done: bool
    nextRecordsUrl: str
    records: list[dict[str, Any]]


class QueryResult(NamedTuple):
    """One batch of records returned by the SOQL query API."""

    total_size: int
    done: bool
    records: list[dict[str, Any]]
    next_records_url: str | None = None

    @classmethod
    def from_json(cls, data: QueryResultJSON) -> "QueryResult":
        records = _require(data, "records", "QueryResult", list)
        return cls(
            total_size=_require(data, "totalSize", "QueryResult", int),
            done=_require(data, "done", "QueryResult", bool),
            records=records,
            next_records_url=data.get("nextRecordsUrl"),
        )


class SaveResult(NamedTuple):
    """Result of a create or update call."""

    success: bool
    id: str | None = None
    errors: list[Any] = []

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "SaveResult":
        return cls(
            success=_require(data, "success", "SaveResult", bool),
            id=data.get("id"),
            errors=list(data.get("errors") or []),
        )


class UserInfo(NamedTuple):
    """The subset of ``/services/oauth2/userinfo`` this package uses."""

    user_id: str
    organization_id: str
    preferred_username: str
    urls: dict[str, str]

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "UserInfo":
        urls = _require(data, "urls", "UserInfo", dict)
        for key in ("rest", "sobjects"):
            _require(urls, key, "UserInfo.urls", str)
        return cls(
            user_id=_require(data, "user_id", "UserInfo", str),
            organization_id=_require(data, "organization_id", "UserInfo", str),
            preferred_username=data.get("preferred_username", ""),
            urls=urls,
        )

    def _url(self, key: str, version: str) -> str:
        return self.urls[key].replace("{version}", version.lstrip("vV")).rstrip("/")

    def rest_url(self, version: str) -> str:
        return self._url("rest", version)

    def sobjects_url(self, version: str) -> str:
        return self._url("sobjects", version)


class Contact(NamedTuple):
    id: str | None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    FIELDS = ("Id", "FirstName", "LastName", "Email", "Phone")

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Contact":
        return cls(
            id=_require(record, "Id", "Contact", str),
            first_name=record.get("FirstName"),
            last_name=record.get("LastName"),
            email=record.get("Email"),
            phone=record.get("Phone"),
        )

    def update_body(self) -> dict[str, str | None]:
        """Only the fields a user may edit."""
        return {
            "FirstName": self.first_name,
            "LastName": self.last_name,
            "Email": self.email,
            "Phone": self.phone,
        }


class ApexTriggerRecord(NamedTuple):
    id: str
    name: str
    body: str

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ApexTriggerRecord":
        return cls(
            id=_require(record, "Id", "ApexTrigger", str),
            name=_require(record, "Name", "ApexTrigger", str),
            body=_require(record, "Body", "ApexTrigger", str),
        )


DEFAULT_EVENTS = ("after insert", "after update")


class GeneratedObject(NamedTuple):
    """
    A webhook: a trigger on ``target_entity`` that posts changes to ``url``.

    ``remote_id`` is the ApexTrigger id returned when the trigger was
    created, and is what deletion is keyed on.
    """

    name: str
    target_entity: str
    url: str | None = None
    remote_id: str | None = None
    events: tuple[str, ...] = DEFAULT_EVENTS
