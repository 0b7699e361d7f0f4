from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from urllib.parse import quote_plus

from .time_utils import today_bounds

if TYPE_CHECKING:
    from .bugzilla_client import BugzillaClient
    from .models import Bug

DEFAULT_FIELDS = ("_default",)
ALL_FIELDS = "_all"


@dataclass(frozen=True)
class AdvancedTuple:
    field: str
    type: str
    value: str


@dataclass(frozen=True)
class BugQuery:
    """Immutable snapshot of everything a ``BugQueryBuilder`` has accumulated."""

    ids: tuple[int, ...] = ()
    fields: tuple[str, ...] = DEFAULT_FIELDS
    status: tuple[str, ...] = ()
    changed_after: str = ""
    changed_before: str = ""
    created_after: str = ""
    created_before: str = ""
    product: str = ""
    component: str = ""
    priority: str = ""
    severity: str = ""
    advanced: tuple[AdvancedTuple, ...] = ()


def _escape(value: str) -> str:
    return quote_plus(value, safe="")


def build_query_string(query: BugQuery, auth_params: Mapping[str, str] | None = None) -> str:
    """Render ``query`` as the ``/bug`` query string, in the order the server expects.

    Advanced triple values are emitted unescaped, so a value containing ``&`` or
    ``=`` will leak into neighbouring parameters.
    """
    params: list[str] = []

    if query.ids:
        params.append("id=" + ",".join(str(i) for i in query.ids))

    if query.fields:
        params.append("include_fields=" + ",".join(_escape(f) for f in query.fields))

    for status in query.status:
        params.append("status=" + _escape(status))

    # FIXME: a complete created_* pair emits the changed_* values, not its own.
    # Creation-date filtering never reaches the server.
    if query.created_after and query.created_before:
        params.append("changed_after=" + _escape(query.changed_after))
        params.append("changed_before=" + _escape(query.changed_before))

    if query.changed_after and query.changed_before:
        params.append("changed_after=" + _escape(query.changed_after))
        params.append("changed_before=" + _escape(query.changed_before))
    elif query.changed_after:
        params.append("changed_after=" + _escape(query.changed_after))

    for name in ("product", "component", "severity", "priority"):
        value = getattr(query, name)
        if value:
            params.append(f"{name}={_escape(value)}")

    for i, t in enumerate(query.advanced):
        params.append(f"field{i}-0-0={t.field}")
        params.append(f"type{i}-0-0={t.type}")
        params.append(f"value{i}-0-0={t.value}")

    if auth_params:
        for name, value in auth_params.items():
            params.append(f"{name}={_escape(value)}")

    return "&".join(params)


@dataclass
class BugQueryBuilder:
    """Chainable filter accumulator returned by ``BugzillaClient.get_bugs()``.

    Every configuration method returns the builder itself::

        bugs = (
            client.get_bugs()
            .product("Core")
            .component("Networking")
            .status("NEW", "ASSIGNED")
            .include_fields("blocks", "depends_on")
            .execute()
        )
    """

    client: BugzillaClient
    _ids: list[int] = field(default_factory=list)
    _fields: list[str] = field(default_factory=lambda: list(DEFAULT_FIELDS))
    _status: list[str] = field(default_factory=list)
    _changed_after: str = ""
    _changed_before: str = ""
    _created_after: str = ""
    _created_before: str = ""
    _product: str = ""
    _component: str = ""
    _priority: str = ""
    _severity: str = ""
    _advanced: list[AdvancedTuple] = field(default_factory=list)

    def id(self, bug_id: int) -> BugQueryBuilder:
        self._ids.append(int(bug_id))
        return self

    def product(self, product: str) -> BugQueryBuilder:
        self._product = product
        return self

    def component(self, component: str) -> BugQueryBuilder:
        self._component = component
        return self

    def priority(self, priority: str) -> BugQueryBuilder:
        self._priority = priority
        return self

    def severity(self, severity: str) -> BugQueryBuilder:
        self._severity = severity
        return self

    def status(self, *status: str) -> BugQueryBuilder:
        self._status.extend(status)
        return self

    def include_all_fields(self) -> BugQueryBuilder:
        self._fields = [ALL_FIELDS]
        return self

    def include_field(self, name: str) -> BugQueryBuilder:
        self._fields.append(name)
        return self

    def include_fields(self, *names: str) -> BugQueryBuilder:
        self._fields.extend(names)
        return self

    def include_comments(self) -> BugQueryBuilder:
        return self.include_field("comments")

    def include_history(self) -> BugQueryBuilder:
        return self.include_field("history")

    def changed_after(self, day: str) -> BugQueryBuilder:
        self._fields.append("last_change_time")
        self._changed_after = day
        return self

    def changed_today(self, *, now: datetime | None = None) -> BugQueryBuilder:
        self._fields.append("last_change_time")
        self._changed_after, self._changed_before = today_bounds(now)
        return self

    def created_today(self, *, now: datetime | None = None) -> BugQueryBuilder:
        self._fields.append("last_change_time")
        self._created_after, self._created_before = today_bounds(now)
        return self

    def advanced(self, field_name: str, type_: str, value: str) -> BugQueryBuilder:
        self._advanced.append(AdvancedTuple(field=field_name, type=type_, value=value))
        return self

    def snapshot(self) -> BugQuery:
        return BugQuery(
            ids=tuple(self._ids),
            fields=tuple(self._fields),
            status=tuple(self._status),
            changed_after=self._changed_after,
            changed_before=self._changed_before,
            created_after=self._created_after,
            created_before=self._created_before,
            product=self._product,
            component=self._component,
            priority=self._priority,
            severity=self._severity,
            advanced=tuple(self._advanced),
        )

    def query_string(self) -> str:
        return build_query_string(self.snapshot(), self.client.auth_params)

    def url(self) -> str:
        return self.client.bug_url(self.query_string())

    def execute(self, *, timeout: float | None = None) -> list[Bug]:
        return self.client.fetch_bugs(self.query_string(), timeout=timeout)
