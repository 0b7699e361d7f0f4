"""Shared fixtures: an in-memory Bugzilla served through ``httpx.MockTransport``."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from bugzilla_query.bugzilla_client import BugzillaClient

SAMPLE_BUG = {
    "id": 886096,
    "alias": None,
    "summary": "Crash in nsHttpChannel",
    "status": "NEW",
    "resolution": "",
    "priority": "P1",
    "severity": "critical",
    "product": "Core",
    "component": "Networking",
    "classification": "Components",
    "version": "Trunk",
    "platform": "All",
    "url": "",
    "whiteboard": "[necko-active]",
    "keywords": ["crash", "regression"],
    "creator": {"name": "alice@example.com", "real_name": "Alice"},
    "assigned_to": {"name": "bob@example.com", "real_name": "Bob"},
    "creation_time": "2013-06-14T09:30:00Z",
    "last_change_time": "2013-06-20T17:05:12Z",
    "blocks": [123, 456, "bad"],
    "depends_on": None,
    "comments": [
        {
            "id": 7531,
            "creation_time": "2013-06-14T09:30:00Z",
            "creator": {"name": "alice@example.com", "real_name": "Alice"},
            "is_private": False,
            "text": "STR: open the page",
        }
    ],
    "history": [
        {
            "change_time": "2013-06-15T10:00:00Z",
            "changer": {"name": "bob@example.com", "real_name": "Bob"},
            "changes": [{"field_name": "status", "added": "NEW", "removed": "UNCONFIRMED"}],
        }
    ],
}


@pytest.fixture
def sample_bug() -> dict:
    return json.loads(json.dumps(SAMPLE_BUG))


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_client(requests_seen) -> Callable[..., BugzillaClient]:
    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> BugzillaClient:
        def record(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return BugzillaClient(transport=httpx.MockTransport(record), **kwargs)

    return factory
