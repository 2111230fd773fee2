"""Library resource types: wallets, mints, metadata, tokens and the record index."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from nautilus_gen.codec import BorshReader, CodecError, decode, encode
from nautilus_gen.errors import InsertRecordError, RecordDecodeError
from nautilus_gen.objects.account import AccountInfo
from nautilus_gen.objects.base import (
    ASSOCIATED_TOKEN_PROGRAM,
    CREATE_EXTRAS,
    METADATA,
    MINT_AUTHORITY,
    SYSTEM_PROGRAM,
    TOKEN_METADATA_PROGRAM,
    TOKEN_PROGRAM,
    NautilusObject,
)

DATA_NOT_SET_MSG = "Data is not loaded for this object"


class Wallet(NautilusObject):
    """A system-owned account holding lamports."""

    __nautilus_requires__ = (SYSTEM_PROGRAM,)
    __nautilus_create_requires__ = CREATE_EXTRAS


class Mint(NautilusObject):
    __nautilus_requires__ = (TOKEN_PROGRAM,)
    __nautilus_create_requires__ = CREATE_EXTRAS


class Metadata(NautilusObject):
    __nautilus_requires__ = (TOKEN_METADATA_PROGRAM,)
    __nautilus_create_requires__ = (MINT_AUTHORITY, *CREATE_EXTRAS)
    __nautilus_pda__ = True


class Token(NautilusObject):
    """
    A mint together with its metadata account.

    The self account is the mint; most queries go to it.
    """

    __nautilus_requires__ = (METADATA, TOKEN_PROGRAM, TOKEN_METADATA_PROGRAM)
    __nautilus_create_requires__ = (MINT_AUTHORITY, *CREATE_EXTRAS)

    @property
    def mint(self) -> AccountInfo:
        return self.account()

    @property
    def metadata(self) -> AccountInfo:
        return self.account("metadata")


class Nft(Token):
    """A token with supply one."""


class AssociatedTokenAccount(NautilusObject):
    __nautilus_requires__ = (TOKEN_PROGRAM, ASSOCIATED_TOKEN_PROGRAM)
    __nautilus_create_requires__ = CREATE_EXTRAS
    __nautilus_pda__ = True


@dataclass
class IndexData:
    """Record counts per table, stored as a Borsh `HashMap<String, u32>`."""

    SEED_PREFIX: ClassVar[str] = "nautilus_index"

    index: dict[str, int] = field(default_factory=dict)

    def get_count(self, table_name: str) -> int | None:
        return self.index.get(table_name)

    def get_next_count(self, table_name: str) -> int | None:
        count = self.index.get(table_name)
        return None if count is None else count + 1

    def add_record(self, table_name: str) -> int:
        if table_name not in self.index:
            raise InsertRecordError(table_name)
        self.index[table_name] += 1
        return self.index[table_name]

    @classmethod
    def decode(cls, data: bytes) -> IndexData:
        reader = BorshReader(data)
        index = {}
        for _ in range(reader.read_u32()):
            name = decode("string", reader)
            index[name] = decode("u32", reader)
        reader.finish()
        return cls(index=index)

    def encode(self) -> bytes:
        # Borsh writes map entries in key order
        entries = sorted(self.index.items())
        body = b"".join(encode("string", k) + encode("u32", v) for k, v in entries)
        return struct.pack("<I", len(entries)) + body


class Index(NautilusObject):
    """The program-wide record counter used to number table rows."""

    __nautilus_requires__ = ()
    __nautilus_create_requires__ = CREATE_EXTRAS
    __nautilus_pda__ = True

    _data: IndexData | None = None

    def load(self) -> None:
        info = self.account()
        if not info.data:
            raise RecordDecodeError("Index", str(info.key), "account holds no data; is it empty?")
        try:
            self._data = IndexData.decode(bytes(info.data))
        except CodecError as e:
            raise RecordDecodeError("Index", str(info.key), f"{e}; are you sure this is the index?") from e

    @property
    def data(self) -> IndexData:
        if self._data is None:
            raise RuntimeError(DATA_NOT_SET_MSG)
        return self._data

    def save(self) -> None:
        self.account().data[:] = self.data.encode()
