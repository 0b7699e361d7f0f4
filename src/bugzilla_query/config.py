from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .bugzilla_client import BUGZILLA_PRODUCTION_ENDPOINT


@dataclass(frozen=True)
class AppConfig:
    endpoint: str
    timeout_s: float
    username: str | None
    password: str | None


def load_config(
    *,
    env_file: Path | None = None,
    endpoint: str | None = None,
    timeout_s: float | None = None,
) -> AppConfig:
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    import os

    resolved_endpoint = (
        (endpoint or os.getenv("BUGZILLA_ENDPOINT") or "").strip().rstrip("/")
        or BUGZILLA_PRODUCTION_ENDPOINT
    )

    if timeout_s is None:
        raw_timeout = os.getenv("BUGZILLA_TIMEOUT", "").strip()
        try:
            timeout_s = float(raw_timeout) if raw_timeout else 30.0
        except ValueError as e:
            raise ValueError(f"Invalid BUGZILLA_TIMEOUT: {raw_timeout!r}") from e
    if timeout_s <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_s}")

    username = os.getenv("BZ_USERNAME", "").strip() or None
    password = os.getenv("BZ_PASSWORD", "") or None

    return AppConfig(
        endpoint=resolved_endpoint,
        timeout_s=timeout_s,
        username=username,
        password=password,
    )
