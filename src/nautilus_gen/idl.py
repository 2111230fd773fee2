"""IDL document types, construction and validation.

The IDL is projected from the same `Dispatcher` the source backend renders,
so instruction accounts and arguments always line up with the dispatcher.
"""

from __future__ import annotations

from typing import Any, TypedDict

from nautilus_gen.constants import DISCRIMINANT_TYPE, IDL_ORIGIN
from nautilus_gen.errors import SchemaConsistencyError
from nautilus_gen.ir import Dispatcher, PlainType, ResourceType
from nautilus_gen.manifest import Manifest


class IdlAccountItem(TypedDict):
    name: str
    mutable: bool
    signer: bool
    desc: str


class IdlField(TypedDict):
    name: str
    type: Any  # IDL type notation


class IdlDiscriminant(TypedDict):
    type: str
    value: int


class IdlInstruction(TypedDict):
    name: str
    discriminant: IdlDiscriminant
    accounts: list[IdlAccountItem]
    args: list[IdlField]


class IdlTypeDef(TypedDict):
    name: str
    type: dict[str, Any]


class IdlDocument(TypedDict, total=False):
    version: str
    name: str
    instructions: list[IdlInstruction]
    accounts: list[IdlTypeDef]
    types: list[IdlTypeDef]
    metadata: dict[str, Any]
    _checksum: str  # Optional, added by the artifact writer


def _fields(fields: tuple) -> list[IdlField]:
    return [{"name": name, "type": t} for name, t in fields]


def _account_def(resource: ResourceType) -> IdlTypeDef:
    return {"name": resource.name, "type": {"kind": "struct", "fields": _fields(resource.fields)}}


def _type_def(plain: PlainType) -> IdlTypeDef:
    if plain.kind == "enum":
        return {"name": plain.name, "type": {"kind": "enum", "variants": [{"name": v} for v in plain.variants]}}
    return {"name": plain.name, "type": {"kind": "struct", "fields": _fields(plain.fields)}}


def check_consistency(idl: IdlDocument, dispatcher: Dispatcher) -> None:
    """Raise SchemaConsistencyError if the IDL disagrees with its dispatcher."""
    instructions = idl.get("instructions", [])
    if len(instructions) != len(dispatcher.variants):
        raise SchemaConsistencyError(
            f"{len(instructions)} IDL instructions for {len(dispatcher.variants)} variants"
        )
    for ix, variant in zip(instructions, dispatcher.variants):
        if len(ix["accounts"]) != len(variant.accounts):
            raise SchemaConsistencyError(
                f"{variant.name}: {len(ix['accounts'])} IDL accounts, {len(variant.accounts)} condensed slots"
            )
        if len(ix["args"]) != len(variant.args):
            raise SchemaConsistencyError(
                f"{variant.name}: {len(ix['args'])} IDL args, {len(variant.args)} plain arguments"
            )
        if ix["discriminant"]["value"] != variant.discriminant:
            raise SchemaConsistencyError(f"{variant.name}: discriminant mismatch")


def build_idl(dispatcher: Dispatcher, manifest: Manifest) -> IdlDocument:
    instructions: list[IdlInstruction] = []
    for v in dispatcher.variants:
        instructions.append(
            {
                "name": v.name,
                "discriminant": {"type": DISCRIMINANT_TYPE, "value": v.discriminant},
                "accounts": [
                    {"name": a.identity, "mutable": a.is_mut, "signer": a.is_signer, "desc": a.description}
                    for a in v.accounts
                ],
                "args": [{"name": a.name, "type": a.idl_type} for a in v.args],
            }
        )
    idl: IdlDocument = {
        "version": manifest.version,
        "name": manifest.name,
        "instructions": instructions,
        "accounts": [_account_def(r) for r in dispatcher.report.resource_types if r.module == dispatcher.module],
        "types": [_type_def(t) for t in dispatcher.report.plain_types],
        "metadata": {"origin": IDL_ORIGIN},
    }
    check_consistency(idl, dispatcher)
    return idl


def _require(obj: dict[str, Any], where: str, fields: dict[str, type | tuple[type, ...]]) -> None:
    for field, expected_type in fields.items():
        if field not in obj:
            raise ValueError(f"{where}: missing required field '{field}'")
        if not isinstance(obj[field], expected_type):
            raise ValueError(f"{where}.{field}: expected {expected_type}, got {type(obj[field]).__name__}")


def validate_idl(data: dict[str, Any]) -> None:
    """Validate an IDL document.

    Raises ValueError with a descriptive message if validation fails.
    """
    _require(
        data,
        "idl",
        {"version": str, "name": str, "instructions": list, "accounts": list, "types": list, "metadata": dict},
    )

    seen: set[int] = set()
    for i, ix in enumerate(data["instructions"]):
        where = f"instructions[{i}]"
        if not isinstance(ix, dict):
            raise ValueError(f"{where}: must be a dict")
        _require(ix, where, {"name": str, "discriminant": dict, "accounts": list, "args": list})

        disc = ix["discriminant"]
        if disc.get("type") != DISCRIMINANT_TYPE:
            raise ValueError(f"{where}.discriminant.type: expected {DISCRIMINANT_TYPE!r}")
        value = disc.get("value")
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 255:
            raise ValueError(f"{where}.discriminant.value: must be an int in 0..255")
        if value in seen:
            raise ValueError(f"{where}.discriminant.value: duplicate discriminant {value}")
        seen.add(value)

        for j, acc in enumerate(ix["accounts"]):
            if not isinstance(acc, dict):
                raise ValueError(f"{where}.accounts[{j}]: must be a dict")
            _require(acc, f"{where}.accounts[{j}]", {"name": str, "mutable": bool, "signer": bool})
        for j, arg in enumerate(ix["args"]):
            if not isinstance(arg, dict):
                raise ValueError(f"{where}.args[{j}]: must be a dict")
            _require(arg, f"{where}.args[{j}]", {"name": str, "type": (str, dict)})

    for section in ("accounts", "types"):
        for i, td in enumerate(data[section]):
            if not isinstance(td, dict):
                raise ValueError(f"{section}[{i}]: must be a dict")
            _require(td, f"{section}[{i}]", {"name": str, "type": dict})
            kind = td["type"].get("kind")
            if kind not in ("struct", "enum"):
                raise ValueError(f"{section}[{i}].type.kind: must be 'struct' or 'enum', got {kind!r}")

    # _checksum is allowed but not validated here (handled by the artifact loader)
