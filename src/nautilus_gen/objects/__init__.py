"""Object library: resource types, capability wrappers and wire value types."""

from nautilus_gen.objects.account import AccountInfo
from nautilus_gen.objects.base import (
    ASSOCIATED_TOKEN_PROGRAM,
    CREATE_EXTRAS,
    FEE_PAYER,
    INDEX,
    METADATA,
    MINT_AUTHORITY,
    RENT,
    SYSTEM_PROGRAM,
    TOKEN_METADATA_PROGRAM,
    TOKEN_PROGRAM,
    Create,
    Mut,
    NautilusObject,
    Signer,
)
from nautilus_gen.objects.builtin import (
    AssociatedTokenAccount,
    Index,
    IndexData,
    Metadata,
    Mint,
    Nft,
    Token,
    Wallet,
)
from nautilus_gen.objects.record import Record
from nautilus_gen.types import Pubkey, f32, f64, i8, i16, i32, i64, i128, u8, u16, u32, u64, u128

__all__ = [
    "ASSOCIATED_TOKEN_PROGRAM",
    "CREATE_EXTRAS",
    "FEE_PAYER",
    "INDEX",
    "METADATA",
    "MINT_AUTHORITY",
    "RENT",
    "SYSTEM_PROGRAM",
    "TOKEN_METADATA_PROGRAM",
    "TOKEN_PROGRAM",
    "AccountInfo",
    "AssociatedTokenAccount",
    "Create",
    "Index",
    "IndexData",
    "Metadata",
    "Mint",
    "Mut",
    "NautilusObject",
    "Nft",
    "Pubkey",
    "Record",
    "Signer",
    "Token",
    "Wallet",
    "f32",
    "f64",
    "i8",
    "i16",
    "i32",
    "i64",
    "i128",
    "u8",
    "u16",
    "u32",
    "u64",
    "u128",
]
