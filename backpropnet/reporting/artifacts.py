"""Run manifest helpers."""

from __future__ import annotations

import json
import platform
import time
from pathlib import Path
from typing import Mapping

from .metrics import _git_sha


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    problem: Mapping[str, object],
    summary: Mapping[str, object] | None = None,
) -> str:
    """Write a manifest JSON file capturing reproducibility metadata."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": _git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "problem": dict(problem),
        "summary": dict(summary or {}),
        "environment": {"python": platform.python_version()},
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)
