"""Expansion of one resource argument into the account slots it needs."""

from __future__ import annotations

from dataclasses import dataclass

from nautilus_gen.ir import Capability, RequiredAccount, ResourceType, SlotDecl, SlotKind


@dataclass(frozen=True)
class Resolution:
    """Slots to read the object, then the slots only creation needs."""

    read: tuple[RequiredAccount, ...]
    create: tuple[RequiredAccount, ...] = ()

    @property
    def all(self) -> tuple[RequiredAccount, ...]:
        return self.read + self.create


def _slot(decl: SlotDecl, arg_name: str, *, owner_mut: bool) -> RequiredAccount:
    is_mut = decl.is_mut or (decl.kind is SlotKind.PAIRED and owner_mut)
    return RequiredAccount(
        identity=decl.identity_for(arg_name),
        role=decl.role,
        kind=decl.kind,
        is_mut=is_mut,
        is_signer=decl.is_signer,
        description=decl.description,
    )


def resolve_requirements(resource: ResourceType, arg_name: str, capability: Capability) -> Resolution:
    """
    Resolve the ordered account slots for `arg_name: resource`.

    The self slot always comes first, followed by the declared
    sub-requirements. Creation extras are appended only when the argument is
    being created.
    """
    self_slot = RequiredAccount(
        identity=arg_name,
        role="self",
        kind=SlotKind.SELF,
        is_mut=capability.mut,
        is_signer=capability.signer or (capability.create and not resource.pda),
        description=f"The {resource.name} account",
    )
    read = (self_slot,) + tuple(_slot(d, arg_name, owner_mut=capability.mut) for d in resource.requires)
    create: tuple[RequiredAccount, ...] = ()
    if capability.create and resource.create_requires:
        create = tuple(_slot(d, arg_name, owner_mut=capability.mut) for d in resource.create_requires)
    return Resolution(read=read, create=create)
