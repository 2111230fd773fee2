"""
Artifact persistence.

Both artifacts are written through a temporary file and an atomic replace, so
a failed build never leaves a half-written dispatcher or IDL behind. The IDL
carries a short checksum for corruption detection.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from nautilus_gen.constants import ENTRYPOINT_SUFFIX, IDL_SUFFIX

logger = logging.getLogger(__name__)


def compute_json_checksum(data: dict[str, Any]) -> str:
    """8-character hex checksum of `data` (keys sorted, compact separators)."""
    json_str = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(json_str.encode()).hexdigest()[:8]


def write_text_atomic(out_path: Path, text: str) -> None:
    tmp = out_path.with_suffix(out_path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(out_path)
    except OSError:
        if tmp.exists():
            tmp.unlink()
        raise


def write_json(out_path: Path, data: dict[str, Any], validate_fn: Any = None) -> None:
    """
    Write `data` atomically with a `_checksum` field.

    Args:
        out_path: Destination file.
        data: JSON-serializable document; it is not modified.
        validate_fn: Optional callable(dict) run before anything is written.

    Raises:
        ValueError: If validation fails.
        OSError: If the write fails.
    """
    doc = dict(data)
    doc.pop("_checksum", None)
    if validate_fn is not None:
        validate_fn(doc)
    doc["_checksum"] = compute_json_checksum(doc)
    write_text_atomic(out_path, json.dumps(doc, indent=2, sort_keys=True) + "\n")


def load_json(path: Path, context: str = "IDL") -> dict[str, Any]:
    """
    Load a document written by `write_json`, verifying its checksum.

    Raises:
        FileNotFoundError: If the file does not exist.
        RuntimeError: If the JSON does not parse or the checksum does not match.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"{context} file not found: {path}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"{context} JSON parse error: {path}\n  {e}") from e
    if not isinstance(data, dict):
        raise RuntimeError(f"{context} file {path}: expected a JSON object")

    stored = data.pop("_checksum", None)
    if stored:
        computed = compute_json_checksum(data)
        if stored != computed:
            raise RuntimeError(
                f"{context} checksum mismatch: {path}\n"
                f"  Stored: {stored}\n"
                f"  Computed: {computed}\n"
                f"  Rebuild the program to regenerate it."
            )
    return data


def artifact_paths(out_dir: Path, program: str) -> tuple[Path, Path]:
    """(dispatcher module path, IDL path) for `program` under `out_dir`."""
    stem = program.replace("-", "_")
    return out_dir / f"{stem}{ENTRYPOINT_SUFFIX}", out_dir / f"{stem}{IDL_SUFFIX}"
