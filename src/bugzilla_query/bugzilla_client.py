from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from .models import Bug, bug_from_json
from .query import BugQueryBuilder

BUGZILLA_PRODUCTION_ENDPOINT = "https://api-dev.bugzilla.mozilla.org/latest"

logger = logging.getLogger(__name__)


@dataclass
class BugzillaClient:
    endpoint: str = BUGZILLA_PRODUCTION_ENDPOINT
    auth_params: dict[str, str] | None = None
    timeout_s: float = 30.0
    transport: httpx.BaseTransport | None = field(default=None, repr=False)

    def _client(self, timeout: float | None = None) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout_s if timeout is None else timeout,
            transport=self.transport,
        )

    def get_bugs(self) -> BugQueryBuilder:
        return BugQueryBuilder(self)

    def login(self, username: str, password: str) -> bool:
        """Record credentials for later queries.

        Not implemented yet: always reports success and leaves ``auth_params``
        untouched, so queries stay anonymous.
        """
        logger.warning("Bugzilla login is not implemented; continuing anonymously as %s", username)
        return True

    def bug_url(self, query: str) -> str:
        return f"{self.endpoint}/bug?{query}"

    def _redacted(self, url: str) -> str:
        for name in self.auth_params or {}:
            url = re.sub(rf"([?&]{re.escape(name)}=)[^&]*", r"\1***", url)
        return url

    def get_json(self, url: str, *, timeout: float | None = None) -> Any:
        logger.debug("Requesting: %s", self._redacted(url))
        with self._client(timeout) as client:
            resp = client.get(url)
            if resp.status_code >= 400:
                logger.warning(
                    "Bugzilla HTTP %s for %s: %s",
                    resp.status_code,
                    self._redacted(url),
                    resp.text[:200].strip() or "No response body",
                )
            return resp.json()

    def fetch_bugs(self, query: str, *, timeout: float | None = None) -> list[Bug]:
        payload = self.get_json(self.bug_url(query), timeout=timeout)
        if not isinstance(payload, dict):
            logger.warning("Unexpected Bugzilla response shape: %s", type(payload).__name__)
            return []
        nodes = payload.get("bugs")
        if not isinstance(nodes, list):
            if payload.get("error"):
                logger.warning("Bugzilla error %s: %s", payload.get("code"), payload.get("message"))
            return []
        return [bug_from_json(n).postprocess() for n in nodes]
