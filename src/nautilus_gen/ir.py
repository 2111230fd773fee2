"""
Intermediate representation shared by analysis, rendering and the IDL.

Everything here is a frozen value: discovery and variant building produce
these objects once, and the backends (source renderer, interpreter, schema
emitter) only read them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from nautilus_gen.codec import IdlType


class SlotKind(str, Enum):
    """Structural subtype of one required account slot."""

    SELF = "self"
    PAIRED = "paired"
    AUTHORITY = "authority"
    SHARED = "shared"


@dataclass(frozen=True)
class SlotDecl:
    """One account requirement as declared by an object type."""

    role: str
    kind: SlotKind
    is_mut: bool = False
    is_signer: bool = False
    description: str = ""

    def identity_for(self, arg_name: str) -> str:
        if self.kind is SlotKind.SHARED:
            return self.role
        if self.kind is SlotKind.SELF:
            return arg_name
        return f"{arg_name}_{self.role}"


@dataclass(frozen=True)
class RequiredAccount:
    """One resolved account slot; `identity` is the deduplication key."""

    identity: str
    role: str
    kind: SlotKind
    is_mut: bool = False
    is_signer: bool = False
    description: str = ""


@dataclass(frozen=True)
class ResourceType:
    type_id: int
    name: str
    module: str
    qualname: str
    requires: tuple[SlotDecl, ...]
    create_requires: tuple[SlotDecl, ...] | None
    pda: bool
    fields: tuple[tuple[str, IdlType], ...] = ()

    @property
    def creatable(self) -> bool:
        return bool(self.create_requires)


@dataclass(frozen=True)
class PlainType:
    type_id: int
    name: str
    module: str
    qualname: str
    kind: str  # "struct" | "enum"
    fields: tuple[tuple[str, IdlType], ...] = ()
    variants: tuple[str, ...] = ()


@dataclass(frozen=True)
class Capability:
    """Capability flags of one resource argument; create/signer imply mut."""

    create: bool = False
    signer: bool = False
    mut: bool = False

    def __post_init__(self) -> None:
        if (self.create or self.signer) and not self.mut:
            object.__setattr__(self, "mut", True)

    @property
    def wrapper(self) -> str | None:
        if self.create:
            return "Create"
        if self.signer:
            return "Signer"
        if self.mut:
            return "Mut"
        return None


@dataclass(frozen=True)
class ResourceArgument:
    name: str
    type_id: int
    capability: Capability | None


@dataclass(frozen=True)
class PlainArgument:
    name: str
    idl_type: IdlType


HandlerParameter = Union[ResourceArgument, PlainArgument]


@dataclass(frozen=True)
class HandlerSource:
    """A handler function as found by discovery, before classification."""

    name: str
    module: str
    qualname: str
    lineno: int
    func: Callable[..., Any] = field(compare=False, repr=False)


@dataclass(frozen=True)
class Handler:
    """A classified handler: every parameter is a resource or a plain argument."""

    name: str
    module: str
    qualname: str
    params: tuple[HandlerParameter, ...]

    @property
    def plain_args(self) -> tuple[PlainArgument, ...]:
        return tuple(p for p in self.params if isinstance(p, PlainArgument))

    @property
    def resource_args(self) -> tuple[ResourceArgument, ...]:
        return tuple(p for p in self.params if isinstance(p, ResourceArgument))


@dataclass(frozen=True)
class ReconstructStep:
    """Rebuild one resource argument from already-consumed account slots."""

    param: str
    type_id: int
    capability: Capability
    read: tuple[RequiredAccount, ...]
    create: tuple[RequiredAccount, ...] = ()


@dataclass(frozen=True)
class PassArgStep:
    """Pass a decoded plain argument through unchanged."""

    param: str


CallStep = Union[ReconstructStep, PassArgStep]


@dataclass(frozen=True)
class Variant:
    discriminant: int
    name: str
    handler: str
    handler_qualname: str
    args: tuple[PlainArgument, ...]
    accounts: tuple[RequiredAccount, ...]
    call_plan: tuple[CallStep, ...]

    @property
    def layout(self) -> list[tuple[str, IdlType]]:
        return [(a.name, a.idl_type) for a in self.args]


@dataclass(frozen=True)
class DiscoveryReport:
    module: str
    resource_types: tuple[ResourceType, ...]
    plain_types: tuple[PlainType, ...]
    handlers: tuple[HandlerSource, ...]
    registry: Mapping[type, int] = field(default_factory=dict, compare=False, repr=False)
    plain_registry: Mapping[type, int] = field(default_factory=dict, compare=False, repr=False)

    def resource(self, type_id: int) -> ResourceType:
        return self.resource_types[type_id]

    def resource_id_of(self, cls: Any) -> int | None:
        if not isinstance(cls, type):
            return None
        return self.registry.get(cls)

    def resource_classes(self) -> dict[int, type]:
        return {tid: cls for cls, tid in self.registry.items()}

    def defined_types(self) -> dict[str, type]:
        return {cls.__name__: cls for cls in self.plain_registry}


@dataclass(frozen=True)
class Dispatcher:
    program: str
    version: str
    module: str
    variants: tuple[Variant, ...]
    report: DiscoveryReport = field(compare=False, repr=False)

    def variant_for(self, discriminant: int) -> Variant | None:
        for v in self.variants:
            if v.discriminant == discriminant:
                return v
        return None
