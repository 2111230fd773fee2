"""Wire-level value types usable in handler and record annotations."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Annotated


class Pubkey(bytes):
    """A 32-byte account key."""

    LENGTH = 32

    def __new__(cls, value: bytes | bytearray | str = bytes(32)) -> Pubkey:
        if isinstance(value, str):
            s = value[2:] if value.startswith(("0x", "0X")) else value
            value = bytes.fromhex(s)
        raw = bytes(value)
        if len(raw) != cls.LENGTH:
            raise ValueError(f"Pubkey must be {cls.LENGTH} bytes, got {len(raw)}")
        return super().__new__(cls, raw)

    @classmethod
    def new_unique(cls) -> Pubkey:
        return cls(secrets.token_bytes(cls.LENGTH))

    def __str__(self) -> str:
        return "0x" + self.hex()

    def __repr__(self) -> str:
        return f"Pubkey({self})"


@dataclass(frozen=True)
class WireType:
    """Marker attached with `Annotated` to pin an int/float to a wire width."""

    name: str


u8 = Annotated[int, WireType("u8")]
u16 = Annotated[int, WireType("u16")]
u32 = Annotated[int, WireType("u32")]
u64 = Annotated[int, WireType("u64")]
u128 = Annotated[int, WireType("u128")]
i8 = Annotated[int, WireType("i8")]
i16 = Annotated[int, WireType("i16")]
i32 = Annotated[int, WireType("i32")]
i64 = Annotated[int, WireType("i64")]
i128 = Annotated[int, WireType("i128")]
f32 = Annotated[float, WireType("f32")]
f64 = Annotated[float, WireType("f64")]
