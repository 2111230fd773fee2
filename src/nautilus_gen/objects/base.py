"""
Object model the dispatcher rebuilds resource arguments into.

Every resource type derives from `NautilusObject` and declares, at class
level, which accounts it needs:

- `__nautilus_requires__`: sub-requirements needed to read the object
  (the self slot is implicit and always comes first);
- `__nautilus_create_requires__`: extra accounts needed only to create it,
  or None when the type cannot be created;
- `__nautilus_pda__`: True for program-derived accounts, whose self slot
  does not sign on creation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from nautilus_gen.errors import ScopeClosedError
from nautilus_gen.ir import SlotDecl, SlotKind
from nautilus_gen.objects.account import AccountInfo
from nautilus_gen.types import Pubkey

FEE_PAYER = SlotDecl("fee_payer", SlotKind.SHARED, is_mut=True, is_signer=True, description="Pays for new accounts")
SYSTEM_PROGRAM = SlotDecl("system_program", SlotKind.SHARED, description="System program")
RENT = SlotDecl("rent", SlotKind.SHARED, description="Rent sysvar")
TOKEN_PROGRAM = SlotDecl("token_program", SlotKind.SHARED, description="Token program")
TOKEN_METADATA_PROGRAM = SlotDecl("token_metadata_program", SlotKind.SHARED, description="Token metadata program")
ASSOCIATED_TOKEN_PROGRAM = SlotDecl(
    "associated_token_program", SlotKind.SHARED, description="Associated token program"
)
INDEX = SlotDecl("index", SlotKind.SHARED, is_mut=True, description="Program record index")
METADATA = SlotDecl("metadata", SlotKind.PAIRED, description="Metadata account paired with the mint")
MINT_AUTHORITY = SlotDecl("mint_authority", SlotKind.AUTHORITY, is_signer=True, description="Mint authority")

CREATE_EXTRAS = (FEE_PAYER, SYSTEM_PROGRAM, RENT)


class NautilusObject:
    """Base class of every resource type."""

    __nautilus_abstract__ = True
    __nautilus_requires__: tuple[SlotDecl, ...] | None = None
    __nautilus_create_requires__: tuple[SlotDecl, ...] | None = None
    __nautilus_pda__ = False

    def __init__(self, program_id: Pubkey, accounts: Mapping[str, AccountInfo], *, scope: Any = None) -> None:
        self.program_id = program_id
        self._accounts = dict(accounts)
        self._scope = scope

    @classmethod
    def from_accounts(
        cls,
        program_id: Pubkey,
        accounts: Mapping[str, AccountInfo],
        *,
        scope: Any = None,
        load: bool = True,
    ) -> NautilusObject:
        obj = cls(program_id, accounts, scope=scope)
        if load:
            obj.load()
        return obj

    @classmethod
    def is_abstract(cls) -> bool:
        return bool(cls.__dict__.get("__nautilus_abstract__", False))

    def load(self) -> None:
        """Parse account data. Stateless library types have nothing to load."""

    def account(self, role: str = "self") -> AccountInfo:
        if self._scope is not None and not self._scope.active:
            raise ScopeClosedError(type(self).__name__)
        try:
            return self._accounts[role]
        except KeyError:
            raise KeyError(f"{type(self).__name__} has no `{role}` account") from None

    @property
    def account_info(self) -> AccountInfo:
        return self.account()

    @property
    def key(self) -> Pubkey:
        return self.account_info.key

    @property
    def is_signer(self) -> bool:
        return self.account_info.is_signer

    @property
    def is_writable(self) -> bool:
        return self.account_info.is_writable

    @property
    def lamports(self) -> int:
        return self.account_info.lamports

    def span(self) -> int:
        return self.account_info.data_len()


T = TypeVar("T", bound=NautilusObject)


class _Wrapper(Generic[T]):
    def __init__(self, self_account: T) -> None:
        self.self_account = self_account

    def __getattr__(self, name: str) -> Any:
        if name == "self_account":
            raise AttributeError(name)
        return getattr(self.self_account, name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.self_account!r})"


class Mut(_Wrapper[T]):
    """Writable access to an object."""


class Signer(_Wrapper[T]):
    """An object whose self account must sign the transaction."""


class Create(_Wrapper[T]):
    """An object being created in this instruction, with the accounts creation needs."""

    def __init__(self, self_account: T, extras: Mapping[str, AccountInfo]) -> None:
        super().__init__(self_account)
        self.extras = dict(extras)

    @property
    def fee_payer(self) -> AccountInfo | None:
        return self.extras.get("fee_payer")

    @property
    def system_program(self) -> AccountInfo | None:
        return self.extras.get("system_program")

    @property
    def rent(self) -> AccountInfo | None:
        return self.extras.get("rent")
