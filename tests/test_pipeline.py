"""Pipeline and artifact persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import load_generated, make_program

from nautilus_gen.artifacts import compute_json_checksum, load_json, write_json
from nautilus_gen.errors import GenerationError, ProgramImportError, WrapperShapeError
from nautilus_gen.logging import JsonlLogger
from nautilus_gen.manifest import Manifest
from nautilus_gen.objects import Mut, Signer, Wallet, u8
from nautilus_gen.pipeline import build_program, load_program, write_artifacts

MANIFEST = Manifest(name="people", version="0.1.0")


def test_build_program(people) -> None:
    result = build_program(people, MANIFEST)
    assert result.dispatcher.program == "people"
    assert len(result.idl["instructions"]) == len(result.dispatcher.variants) == 7
    assert "def process_instruction(" in result.source


def test_write_artifacts(people, tmp_path: Path) -> None:
    result = build_program(people, MANIFEST)
    entry_path, idl_path = write_artifacts(result, tmp_path / "out")

    assert entry_path == tmp_path / "out" / "people_entrypoint.py"
    assert idl_path == tmp_path / "out" / "people.json"
    assert entry_path.read_text() == result.source

    raw = json.loads(idl_path.read_text())
    assert raw["_checksum"] == compute_json_checksum({k: v for k, v in raw.items() if k != "_checksum"})
    assert load_json(idl_path) == json.loads(json.dumps(result.idl))
    assert not list((tmp_path / "out").glob("*.tmp"))

    module = load_generated(entry_path.read_text(), tmp_path / "reloaded_entrypoint.py")
    assert callable(module.process_instruction)


def test_hyphenated_program_name(people, tmp_path: Path) -> None:
    result = build_program(people, Manifest(name="my-people", version="1.0.0"))
    entry_path, idl_path = write_artifacts(result, tmp_path)
    assert entry_path.name == "my_people_entrypoint.py"
    assert idl_path.name == "my_people.json"


def test_one_bad_handler_aborts_the_whole_build(tmp_path: Path) -> None:
    def good(amount: u8, wallet: Wallet) -> None: ...

    def bad(wallet: Mut[Signer[Wallet]]) -> None: ...

    module = make_program("half_broken", good, bad, Wallet=Wallet)
    with pytest.raises(WrapperShapeError) as exc_info:
        build_program(module, MANIFEST)
    assert exc_info.value.data["handler"] == "bad"
    assert not (tmp_path / "out").exists()


def test_build_events(people, tmp_path: Path) -> None:
    events = JsonlLogger(base_dir=tmp_path, run_id="people build/1")
    build_program(people, MANIFEST, events=events)

    assert events.paths.root == tmp_path / "people_build_1"
    rows = [json.loads(line) for line in events.paths.events.read_text().splitlines()]
    assert [r["event"] for r in rows] == ["analyzed", "rendered"]
    assert rows[0]["instructions"][0] == "Initialize"
    assert all(isinstance(r["t"], int) for r in rows)


def test_load_program() -> None:
    assert load_program("programs.people").__name__ == "programs.people"
    with pytest.raises(ProgramImportError) as exc_info:
        load_program("programs.does_not_exist")
    assert isinstance(exc_info.value, GenerationError)


def test_load_json_detects_corruption(tmp_path: Path) -> None:
    path = tmp_path / "doc.json"
    write_json(path, {"name": "p", "n": 1})
    doc = json.loads(path.read_text())
    doc["n"] = 2
    path.write_text(json.dumps(doc))
    with pytest.raises(RuntimeError, match="checksum mismatch"):
        load_json(path)


def test_write_json_validates_before_writing(tmp_path: Path) -> None:
    def reject(doc: dict) -> None:
        raise ValueError("nope")

    path = tmp_path / "doc.json"
    with pytest.raises(ValueError, match="nope"):
        write_json(path, {"a": 1}, validate_fn=reject)
    assert not path.exists()
