from __future__ import annotations

from dataclasses import dataclass, field

from nautilus_gen.types import Pubkey


@dataclass
class AccountInfo:
    """An opaque account handle as supplied by the invoking environment."""

    key: Pubkey = field(default_factory=Pubkey.new_unique)
    is_signer: bool = False
    is_writable: bool = False
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: Pubkey | None = None

    def data_len(self) -> int:
        return len(self.data)
