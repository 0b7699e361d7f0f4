from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from .errors import BugzillaDecodeError
from .time_utils import parse_bugzilla_datetime


@dataclass(frozen=True)
class Person:
    name: str
    real_name: str | None


@dataclass(frozen=True)
class Comment:
    id: int
    creation_time: datetime | None
    creator: Person | None
    is_private: bool
    text: str


@dataclass(frozen=True)
class FieldChange:
    field_name: str
    added: str
    removed: str


@dataclass(frozen=True)
class ChangeSet:
    change_time: datetime | None
    changer: Person | None
    changes: tuple[FieldChange, ...]


@dataclass(frozen=True)
class Bug:
    id: int
    alias: str | None = None
    summary: str = ""
    status: str = ""
    resolution: str = ""
    priority: str = ""
    severity: str = ""
    product: str = ""
    component: str = ""
    classification: str = ""
    version: str = ""
    platform: str = ""
    url: str = ""
    whiteboard: str = ""
    keywords: tuple[str, ...] = ()
    creator: Person | None = None
    assigned_to: Person | None = None
    creation_time: datetime | None = None
    last_change_time: datetime | None = None
    comments: tuple[Comment, ...] = ()
    history: tuple[ChangeSet, ...] = ()
    blocks: tuple[int, ...] = ()
    depends_on: tuple[int, ...] = ()
    # Raw wire values for blocks/depends_on; only the parsed tuples are public.
    _raw_blocks: Any = field(default=None, repr=False, compare=False)
    _raw_depends_on: Any = field(default=None, repr=False, compare=False)

    def postprocess(self) -> Bug:
        object.__setattr__(self, "blocks", parse_bug_ids(self._raw_blocks))
        object.__setattr__(self, "depends_on", parse_bug_ids(self._raw_depends_on))
        return self

    def age(self, now: datetime | None = None) -> timedelta | None:
        if self.creation_time is None:
            return None
        return (now or datetime.now(UTC)) - self.creation_time


def parse_bug_ids(raw: Any) -> tuple[int, ...]:
    """Normalize a raw ``blocks``/``depends_on`` value into bug ids.

    Integers are kept and finite floats truncated; everything else (bools,
    strings, NaN, infinities) is skipped. A value that is not a list yields
    an empty tuple.
    """
    if not isinstance(raw, list):
        return ()
    return tuple(int(v) for v in raw if _is_bug_id(v))


def _is_bug_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


def _str(n: dict[str, Any], key: str) -> str:
    value = n.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BugzillaDecodeError(f"Expected string for {key!r}, got {type(value).__name__}", field=key)
    return value


def _time(n: dict[str, Any], key: str) -> datetime | None:
    value = n.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BugzillaDecodeError(f"Expected timestamp for {key!r}, got {type(value).__name__}", field=key)
    try:
        return parse_bugzilla_datetime(value)
    except ValueError as e:
        raise BugzillaDecodeError(f"Invalid timestamp for {key!r}: {value!r}", field=key) from e


def _int(n: dict[str, Any], key: str) -> int:
    value = n.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise BugzillaDecodeError(f"Expected integer for {key!r}, got {value!r}", field=key)
    return value


def _bool(n: dict[str, Any], key: str) -> bool:
    value = n.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise BugzillaDecodeError(f"Expected boolean for {key!r}, got {value!r}", field=key)
    return value


def _list(n: dict[str, Any], key: str) -> list[Any]:
    value = n.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise BugzillaDecodeError(f"Expected list for {key!r}, got {type(value).__name__}", field=key)
    return value


def _object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise BugzillaDecodeError(f"Expected object for {what}, got {type(value).__name__}")
    return value


def person_from_json(value: Any) -> Person | None:
    # Older API versions send {"name", "real_name"}; newer ones a bare login.
    if value is None:
        return None
    if isinstance(value, str):
        return Person(name=value, real_name=None)
    n = _object(value, "person")
    return Person(name=_str(n, "name"), real_name=n.get("real_name"))


def comment_from_json(value: Any) -> Comment:
    n = _object(value, "comment")
    return Comment(
        id=_int(n, "id"),
        creation_time=_time(n, "creation_time"),
        creator=person_from_json(n.get("creator")),
        is_private=_bool(n, "is_private"),
        text=_str(n, "text"),
    )


def change_set_from_json(value: Any) -> ChangeSet:
    n = _object(value, "history entry")
    changes = []
    for c in _list(n, "changes"):
        c = _object(c, "change")
        changes.append(
            FieldChange(
                field_name=_str(c, "field_name"),
                added=_str(c, "added"),
                removed=_str(c, "removed"),
            )
        )
    return ChangeSet(
        change_time=_time(n, "change_time"),
        changer=person_from_json(n.get("changer")),
        changes=tuple(changes),
    )


def bug_from_json(value: Any) -> Bug:
    """Decode one element of the ``bugs`` array. Postprocessing is left to the caller."""
    n = _object(value, "bug")
    keywords = _list(n, "keywords")
    alias = n.get("alias")
    if isinstance(alias, list):
        # Bugzilla 5 returns a list of aliases; the first one is canonical.
        alias = alias[0] if alias else None
    if not all(isinstance(k, str) for k in keywords):
        raise BugzillaDecodeError("Expected list of strings for 'keywords'", field="keywords")
    return Bug(
        id=_int(n, "id"),
        alias=alias or None,
        summary=_str(n, "summary"),
        status=_str(n, "status"),
        resolution=_str(n, "resolution"),
        priority=_str(n, "priority"),
        severity=_str(n, "severity"),
        product=_str(n, "product"),
        component=_str(n, "component"),
        classification=_str(n, "classification"),
        version=_str(n, "version"),
        platform=_str(n, "platform"),
        url=_str(n, "url"),
        whiteboard=_str(n, "whiteboard"),
        keywords=tuple(keywords),
        creator=person_from_json(n.get("creator")),
        assigned_to=person_from_json(n.get("assigned_to")),
        creation_time=_time(n, "creation_time"),
        last_change_time=_time(n, "last_change_time"),
        comments=tuple(comment_from_json(c) for c in _list(n, "comments")),
        history=tuple(change_set_from_json(h) for h in _list(n, "history")),
        _raw_blocks=n.get("blocks"),
        _raw_depends_on=n.get("depends_on"),
    )
