"""
Build pipeline: discovery, classification, variant building, then both
backends.

Everything is computed in memory first. A `GenerationError` anywhere aborts
the build before a single artifact is written.
"""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from nautilus_gen.artifacts import artifact_paths, write_json, write_text_atomic
from nautilus_gen.classifier import classify_handler
from nautilus_gen.discovery import scan_module
from nautilus_gen.errors import ProgramImportError
from nautilus_gen.idl import IdlDocument, build_idl, validate_idl
from nautilus_gen.ir import Dispatcher
from nautilus_gen.logging import JsonlLogger
from nautilus_gen.manifest import Manifest
from nautilus_gen.render import render_dispatcher
from nautilus_gen.variants import build_dispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    dispatcher: Dispatcher
    source: str
    idl: IdlDocument


def load_program(module_path: str, search_path: Path | None = None) -> ModuleType:
    """
    Import the program module named by the manifest or the command line.

    `search_path` (usually the project root) is put on `sys.path` first so
    that the program imports the same way it does inside its own project.
    """
    if search_path is not None and str(search_path) not in sys.path:
        sys.path.insert(0, str(search_path))
    try:
        return importlib.import_module(module_path)
    except ImportError as e:
        raise ProgramImportError(module_path, str(e)) from e


def analyze(module: ModuleType, program: str, version: str = "0.0.0") -> Dispatcher:
    report = scan_module(module)
    handlers = [classify_handler(source, report) for source in report.handlers]
    return build_dispatcher(report, handlers, program, version)


def build_program(
    module: ModuleType,
    manifest: Manifest,
    *,
    events: JsonlLogger | None = None,
) -> BuildResult:
    """Analyse `module` and render its dispatcher source and IDL."""
    logger.info("Building %s %s from %s", manifest.name, manifest.version, module.__name__)
    dispatcher = analyze(module, manifest.name, manifest.version)
    if events is not None:
        events.event(
            "analyzed",
            module=module.__name__,
            resource_types=len(dispatcher.report.resource_types),
            plain_types=len(dispatcher.report.plain_types),
            instructions=[v.name for v in dispatcher.variants],
        )

    source = render_dispatcher(dispatcher)
    idl = build_idl(dispatcher, manifest)
    validate_idl(idl)
    if events is not None:
        events.event("rendered", source_bytes=len(source.encode()), instructions=len(idl["instructions"]))
    return BuildResult(dispatcher=dispatcher, source=source, idl=idl)


def write_artifacts(result: BuildResult, out_dir: Path) -> tuple[Path, Path]:
    """Write the dispatcher module and the IDL under `out_dir`; returns their paths."""
    out_dir.mkdir(parents=True, exist_ok=True)
    entry_path, idl_path = artifact_paths(out_dir, result.dispatcher.program)
    write_json(idl_path, dict(result.idl), validate_fn=validate_idl)
    write_text_atomic(entry_path, result.source)
    logger.info("Wrote %s and %s", entry_path, idl_path)
    return entry_path, idl_path
