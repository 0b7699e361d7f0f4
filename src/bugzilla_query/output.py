from __future__ import annotations

import os
import tempfile
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from .models import Bug
from .time_utils import to_iso


def write_text_atomic(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write ``content`` through a sibling temp file so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding=encoding, dir=path.parent, prefix=f".{path.name}.", delete=False
    ) as tmp:
        tmp.write(content)
    try:
        os.replace(tmp.name, path)
    except OSError:
        os.unlink(tmp.name)
        raise


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def bug_to_dict(bug: Bug) -> dict[str, Any]:
    data = asdict(bug)
    data.pop("_raw_blocks", None)
    data.pop("_raw_depends_on", None)
    return _jsonable(data)
