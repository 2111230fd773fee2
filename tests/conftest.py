"""
Shared pytest fixtures and helpers.

This module provides:
- the sample programs under `tests/programs` and their dispatchers
- account-list builders laid out per a variant's condensed order
- an in-memory program module builder for error cases
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
import textwrap
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import Any

import pytest

from nautilus_gen.codec import encode_instruction
from nautilus_gen.ir import Dispatcher, Variant
from nautilus_gen.objects import AccountInfo, Pubkey
from nautilus_gen.pipeline import analyze
from nautilus_gen.render import render_dispatcher

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_program(name: str, *members: Any, **named: Any) -> ModuleType:
    """
    Build a program module in memory.

    Functions are re-homed into the new module so discovery treats them as
    handlers; classes keep their defining module.
    """
    module = ModuleType(name)
    for obj in members:
        named[obj.__name__] = obj
    for attr, obj in named.items():
        if inspect.isfunction(obj):
            obj.__module__ = name
        setattr(module, attr, obj)
    return module


def accounts_for(variant: Variant, **overrides: AccountInfo) -> list[AccountInfo]:
    """One handle per condensed slot, flagged as the slot requires."""
    out = []
    for slot in variant.accounts:
        info = overrides.get(slot.identity) or AccountInfo(is_signer=slot.is_signer, is_writable=slot.is_mut)
        out.append(info)
    return out


def payload(dispatcher: Dispatcher, instruction: str, *values: Any) -> bytes:
    variant = next(v for v in dispatcher.variants if v.name == instruction)
    return encode_instruction(variant.discriminant, variant.layout, list(values), dispatcher.report.defined_types())


def variant_named(dispatcher: Dispatcher, instruction: str) -> Variant:
    return next(v for v in dispatcher.variants if v.name == instruction)


def load_generated(source: str, path: Path) -> ModuleType:
    """Write rendered dispatcher source to `path` and import it."""
    path.write_text(source, encoding="utf-8")
    spec = importlib.util.spec_from_file_location(path.stem, path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def write_manifest(path: Path, *, name: str = "people", version: str = "0.1.0", program: str | None = None) -> Path:
    body = f"""
        [project]
        name = "{name}"
        version = "{version}"
    """
    if program is not None:
        body += f"""
        [tool.nautilus]
        program = "{program}"
    """
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def people() -> ModuleType:
    return importlib.import_module("programs.people")


@pytest.fixture
def scenarios() -> ModuleType:
    module = importlib.import_module("programs.scenarios")
    module.CALLS.clear()
    return module


@pytest.fixture
def people_dispatcher(people: ModuleType) -> Dispatcher:
    return analyze(people, "people", "0.1.0")


@pytest.fixture
def scenario_dispatcher(scenarios: ModuleType) -> Dispatcher:
    return analyze(scenarios, "scenarios", "0.1.0")


@pytest.fixture
def program_id() -> Pubkey:
    return Pubkey.new_unique()


@pytest.fixture
def generated(tmp_path: Path) -> Callable[[Dispatcher], ModuleType]:
    """Render a dispatcher and import the resulting module."""

    def _load(dispatcher: Dispatcher) -> ModuleType:
        return load_generated(render_dispatcher(dispatcher), tmp_path / f"{dispatcher.program}_entrypoint.py")

    return _load


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    return write_manifest(tmp_path / "pyproject.toml", program="programs.people")
