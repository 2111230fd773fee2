"""Dispatcher and IDL generation for Nautilus programs."""

from nautilus_gen.errors import GenerationError, RuntimeDispatchError
from nautilus_gen.manifest import Manifest, load_manifest
from nautilus_gen.pipeline import BuildResult, analyze, build_program, write_artifacts
from nautilus_gen.runtime import Interpreter

__all__ = [
    "BuildResult",
    "GenerationError",
    "Interpreter",
    "Manifest",
    "RuntimeDispatchError",
    "analyze",
    "build_program",
    "load_manifest",
    "write_artifacts",
]
