from __future__ import annotations

import json
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path


def _now_unix() -> int:
    return int(time.time())


def _safe_filename(s: str) -> str:
    out = []
    for ch in s:
        if ch.isalnum() or ch in ("-", "_", "."):
            out.append(ch)
        else:
            out.append("_")
    return "".join(out)[:120]


def default_run_id(*, prefix: str) -> str:
    """Unique build ID from a UTC timestamp, the PID and a short random suffix."""
    ts = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    return f"{prefix}_{ts}_pid{os.getpid()}_{secrets.token_hex(3)}"


@dataclass(frozen=True)
class JsonlPaths:
    root: Path
    run_metadata: Path
    events: Path


class JsonlLogger:
    """
    Build event log:
    - run_metadata.json: one JSON object describing the build
    - events.jsonl: one JSON object per pipeline event
    """

    def __init__(self, *, base_dir: Path, run_id: str) -> None:
        root = base_dir / _safe_filename(run_id)
        root.mkdir(parents=True, exist_ok=True)
        self.paths = JsonlPaths(
            root=root,
            run_metadata=root / "run_metadata.json",
            events=root / "events.jsonl",
        )

    def write_run_metadata(self, obj: dict) -> None:
        self.paths.run_metadata.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n")

    def event(self, name: str, **fields: object) -> None:
        """
        Append one event. Every row has `t` (unix seconds) and `event`
        (the name); other fields are included as given.
        """
        row = {"t": _now_unix(), "event": name, **fields}
        with self.paths.events.open("a", encoding="utf-8") as f:
            f.write(json.dumps(row, sort_keys=True, default=str) + "\n")
