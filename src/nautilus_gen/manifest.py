"""Project manifest loading (`pyproject.toml`)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from nautilus_gen.errors import ManifestError


@dataclass(frozen=True)
class Manifest:
    name: str
    version: str
    program: str | None = None  # module path from [tool.nautilus].program


def load_manifest(path: Path) -> Manifest:
    """
    Read name and version from `[project]` and the program module from
    `[tool.nautilus]`.

    Raises:
        ManifestError: If the file is missing or unreadable, or name/version are absent.
    """
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ManifestError(str(path), "file not found") from e
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ManifestError(str(path), str(e)) from e

    project = data.get("project")
    if not isinstance(project, dict):
        raise ManifestError(str(path), "missing [project] table")
    for key in ("name", "version"):
        value = project.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ManifestError(str(path), f"missing [project].{key}")

    tool = data.get("tool", {}).get("nautilus", {})
    program = tool.get("program") if isinstance(tool, dict) else None
    if program is not None and not isinstance(program, str):
        raise ManifestError(str(path), "[tool.nautilus].program must be a module path string")
    return Manifest(name=project["name"], version=project["version"], program=program)
