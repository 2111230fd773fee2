"""
Borsh-compatible binary encoding driven by IDL type notation.

The same notation is used in the IDL and in generated dispatchers, so a type
is described exactly once:

  - primitives: "bool", "u8".."u128", "i8".."i128", "f32", "f64",
    "string", "bytes", "publicKey"
  - {"vec": T}, {"option": T}, {"array": [T, n]} (fixed length, no prefix)
  - {"defined": "Name"}: a dataclass (fields in declaration order) or an
    Enum (u8 variant index, declaration order)

All integers are little-endian; strings, bytes and vectors carry a u32 length
prefix; options carry a u8 presence tag.
"""

from __future__ import annotations

import dataclasses
import enum
import struct
import types
import typing
from collections.abc import Container, Iterable, Mapping, Sequence
from typing import Annotated, Any, Union

from nautilus_gen.types import Pubkey, WireType

IdlType = Union[str, dict[str, Any]]

_FIXED_FORMATS = {
    "u8": "<B",
    "u16": "<H",
    "u32": "<I",
    "u64": "<Q",
    "i8": "<b",
    "i16": "<h",
    "i32": "<i",
    "i64": "<q",
    "f32": "<f",
    "f64": "<d",
}
_WIDE_SIGNED = {"u128": False, "i128": True}

PRIMITIVES = frozenset(_FIXED_FORMATS) | frozenset(_WIDE_SIGNED) | {"bool", "string", "bytes", "publicKey"}


class CodecError(ValueError):
    """Raised when a value cannot be encoded or bytes cannot be decoded."""

    pass


class BorshReader:
    """Forward-only cursor over an encoded byte string."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def read(self, n: int) -> bytes:
        if n > self.remaining:
            raise CodecError(
                f"unexpected end of data: needed {n} bytes at offset {self.offset}, {self.remaining} left"
            )
        chunk = self._data[self.offset : self.offset + n]
        self.offset += n
        return chunk

    def read_u8(self) -> int:
        return self.read(1)[0]

    def read_u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def finish(self) -> None:
        if self.remaining:
            raise CodecError(f"{self.remaining} trailing bytes after offset {self.offset}")


def _split_composite(t: IdlType) -> tuple[str, Any]:
    if not isinstance(t, dict) or len(t) != 1:
        raise CodecError(f"malformed type: {t!r}")
    ((kind, inner),) = t.items()
    return kind, inner


def _defined_class(name: str, defined: Mapping[str, type]) -> type:
    cls = defined.get(name)
    if cls is None:
        raise CodecError(f"unknown defined type: {name}")
    return cls


def layout_from_hints(
    owner: str,
    names: Sequence[str],
    hints: Mapping[str, Any],
    plain_types: Container[type] | None = None,
) -> list[tuple[str, IdlType]]:
    layout = []
    for name in names:
        t = idl_type_of(hints[name], plain_types)
        if t is None:
            raise CodecError(f"{owner}.{name}: unsupported field type {hints[name]!r}")
        layout.append((name, t))
    return layout


def struct_layout(cls: type, plain_types: Container[type] | None = None) -> list[tuple[str, IdlType]]:
    """Field layout of a dataclass in declaration order."""
    hints = typing.get_type_hints(cls, include_extras=True)
    names = [f.name for f in dataclasses.fields(cls)]
    return layout_from_hints(cls.__name__, names, hints, plain_types)


def decode(t: IdlType, reader: BorshReader, defined: Mapping[str, type] | None = None) -> Any:
    defined = defined or {}
    if isinstance(t, str):
        if t in _FIXED_FORMATS:
            fmt = _FIXED_FORMATS[t]
            return struct.unpack(fmt, reader.read(struct.calcsize(fmt)))[0]
        if t in _WIDE_SIGNED:
            return int.from_bytes(reader.read(16), "little", signed=_WIDE_SIGNED[t])
        if t == "bool":
            b = reader.read_u8()
            if b not in (0, 1):
                raise CodecError(f"invalid bool byte: {b}")
            return b == 1
        if t == "string":
            raw = reader.read(reader.read_u32())
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CodecError(f"invalid utf-8 string: {e}") from e
        if t == "bytes":
            return reader.read(reader.read_u32())
        if t == "publicKey":
            return Pubkey(reader.read(Pubkey.LENGTH))
        raise CodecError(f"unknown type: {t!r}")

    kind, inner = _split_composite(t)
    if kind == "vec":
        return [decode(inner, reader, defined) for _ in range(reader.read_u32())]
    if kind == "option":
        tag = reader.read_u8()
        if tag == 0:
            return None
        if tag != 1:
            raise CodecError(f"invalid option tag: {tag}")
        return decode(inner, reader, defined)
    if kind == "array":
        item, length = inner
        return tuple(decode(item, reader, defined) for _ in range(length))
    if kind == "defined":
        cls = _defined_class(inner, defined)
        if issubclass(cls, enum.Enum):
            members = list(cls)
            idx = reader.read_u8()
            if idx >= len(members):
                raise CodecError(f"invalid {cls.__name__} variant index: {idx}")
            return members[idx]
        values = {name: decode(ft, reader, defined) for name, ft in struct_layout(cls)}
        return cls(**values)
    raise CodecError(f"unknown composite type: {kind!r}")


def encode(t: IdlType, value: Any, defined: Mapping[str, type] | None = None) -> bytes:
    defined = defined or {}
    if isinstance(t, str):
        if t in _FIXED_FORMATS:
            try:
                return struct.pack(_FIXED_FORMATS[t], value)
            except struct.error as e:
                raise CodecError(f"cannot encode {value!r} as {t}: {e}") from e
        if t in _WIDE_SIGNED:
            try:
                return int(value).to_bytes(16, "little", signed=_WIDE_SIGNED[t])
            except OverflowError as e:
                raise CodecError(f"cannot encode {value!r} as {t}: {e}") from e
        if t == "bool":
            if not isinstance(value, bool):
                raise CodecError(f"expected bool, got {type(value).__name__}")
            return b"\x01" if value else b"\x00"
        if t in ("string", "bytes"):
            raw = value.encode("utf-8") if t == "string" else bytes(value)
            return struct.pack("<I", len(raw)) + raw
        if t == "publicKey":
            try:
                return bytes(Pubkey(value))
            except ValueError as e:
                raise CodecError(str(e)) from e
        raise CodecError(f"unknown type: {t!r}")

    kind, inner = _split_composite(t)
    if kind == "vec":
        items = list(value)
        return struct.pack("<I", len(items)) + b"".join(encode(inner, v, defined) for v in items)
    if kind == "option":
        if value is None:
            return b"\x00"
        return b"\x01" + encode(inner, value, defined)
    if kind == "array":
        item, length = inner
        items = list(value)
        if len(items) != length:
            raise CodecError(f"expected {length} array items, got {len(items)}")
        return b"".join(encode(item, v, defined) for v in items)
    if kind == "defined":
        cls = _defined_class(inner, defined)
        if issubclass(cls, enum.Enum):
            return struct.pack("<B", list(cls).index(cls(value)))
        return b"".join(encode(ft, getattr(value, name), defined) for name, ft in struct_layout(cls))
    raise CodecError(f"unknown composite type: {kind!r}")


def decode_arguments(
    reader: BorshReader,
    layout: Sequence[tuple[str, IdlType]],
    defined: Mapping[str, type] | None = None,
) -> list[Any]:
    """Decode an argument tuple and require that the payload is fully consumed."""
    values = [decode(t, reader, defined) for _, t in layout]
    reader.finish()
    return values


def encode_instruction(
    discriminant: int,
    layout: Sequence[tuple[str, IdlType]],
    values: Sequence[Any],
    defined: Mapping[str, type] | None = None,
) -> bytes:
    """Client-side helper: build the payload a dispatcher expects."""
    if len(values) != len(layout):
        raise CodecError(f"expected {len(layout)} arguments, got {len(values)}")
    body = b"".join(encode(t, v, defined) for (_, t), v in zip(layout, values))
    return struct.pack("<B", discriminant) + body


def collect_defined(hints: Iterable[Any]) -> dict[str, type]:
    """Every dataclass/Enum reachable from `hints`, keyed by class name."""
    found: dict[str, type] = {}

    def visit(h: Any) -> None:
        if typing.get_origin(h) is not None:
            for arg in typing.get_args(h):
                visit(arg)
            return
        if not isinstance(h, type) or h.__name__ in found:
            return
        if issubclass(h, enum.Enum):
            found[h.__name__] = h
        elif dataclasses.is_dataclass(h):
            found[h.__name__] = h
            for field_hint in typing.get_type_hints(h, include_extras=True).values():
                visit(field_hint)

    for hint in hints:
        visit(hint)
    return found


def idl_type_of(hint: Any, plain_types: Container[type] | None = None) -> IdlType | None:
    """
    Map a Python annotation onto IDL notation.

    `plain_types` restricts which dataclasses/enums count as defined types;
    when omitted any dataclass or Enum is accepted. Returns None when the
    annotation has no wire encoding.
    """
    if typing.get_origin(hint) is Annotated:
        base, *meta = typing.get_args(hint)
        for m in meta:
            if isinstance(m, WireType):
                return m.name
        return idl_type_of(base, plain_types)

    # bool before int: bool is an int subclass
    if hint is bool:
        return "bool"
    if hint is int:
        return "u64"
    if hint is float:
        return "f64"
    if hint is str:
        return "string"
    if hint is bytes:
        return "bytes"
    if hint is Pubkey:
        return "publicKey"

    origin = typing.get_origin(hint)
    if origin is list:
        args = typing.get_args(hint)
        inner = idl_type_of(args[0], plain_types) if len(args) == 1 else None
        return {"vec": inner} if inner is not None else None
    if origin is tuple:
        args = typing.get_args(hint)
        if not args or Ellipsis in args or len(set(args)) != 1:
            return None
        inner = idl_type_of(args[0], plain_types)
        return {"array": [inner, len(args)]} if inner is not None else None
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(hint)
        present = [a for a in args if a is not type(None)]
        if len(args) == 2 and len(present) == 1:
            inner = idl_type_of(present[0], plain_types)
            return {"option": inner} if inner is not None else None
        return None
    if origin is not None:
        return None

    if isinstance(hint, type) and (dataclasses.is_dataclass(hint) or issubclass(hint, enum.Enum)):
        if plain_types is None or hint in plain_types:
            return {"defined": hint.__name__}
    return None
