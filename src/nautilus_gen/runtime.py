"""
Dispatch-time support.

Generated dispatchers and the in-process `Interpreter` share everything here,
so both execute an instruction the same way:

1. read the u8 discriminant and route to a variant;
2. decode the plain arguments (the payload must be consumed exactly);
3. consume one account per condensed slot, in order;
4. rebuild each resource argument inside a `DispatchScope`;
5. call the handler with arguments in its declared order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import ModuleType
from typing import Any

from nautilus_gen.codec import BorshReader, CodecError, IdlType, decode_arguments
from nautilus_gen.constants import PROGRAM_LOGGER_NAME
from nautilus_gen.errors import MissingAccountError, PayloadDecodeError, UnknownInstructionError
from nautilus_gen.ir import Capability, Dispatcher, PassArgStep, Variant
from nautilus_gen.objects.account import AccountInfo
from nautilus_gen.objects.base import Create, Mut, NautilusObject, Signer
from nautilus_gen.types import Pubkey

logger = logging.getLogger(__name__)
program_logger = logging.getLogger(PROGRAM_LOGGER_NAME)


def msg(text: str) -> None:
    """Program log line, the equivalent of an on-chain `msg!`."""
    program_logger.info(text)


class InstructionReader:
    """Reads the discriminant and then the argument tuple of one payload."""

    def __init__(self, data: bytes | bytearray) -> None:
        self._reader = BorshReader(data)

    def discriminant(self) -> int:
        if self._reader.remaining == 0:
            raise UnknownInstructionError(None)
        return self._reader.read_u8()

    def arguments(
        self,
        instruction: str,
        layout: Sequence[tuple[str, IdlType]],
        defined: Mapping[str, type] | None = None,
    ) -> list[Any]:
        try:
            return decode_arguments(self._reader, layout, defined)
        except CodecError as e:
            raise PayloadDecodeError(instruction, str(e)) from e


class DispatchScope:
    """
    Arena for one dispatch call.

    It records the handles consumed and the objects rebuilt for the call.
    Objects built inside a scope refuse account access once it has closed, so
    nothing rebuilt for one instruction can be used by the next.
    """

    def __init__(self, instruction: str) -> None:
        self.instruction = instruction
        self.active = False
        self.handles: dict[str, AccountInfo] = {}
        self.objects: list[NautilusObject] = []

    def __enter__(self) -> DispatchScope:
        self.active = True
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.active = False
        self.handles.clear()

    def adopt(self, obj: NautilusObject) -> NautilusObject:
        self.objects.append(obj)
        return obj


class AccountCursor:
    """Single forward cursor over the supplied account list."""

    def __init__(
        self,
        accounts: Sequence[AccountInfo],
        instruction: str,
        scope: DispatchScope | None = None,
    ) -> None:
        self._accounts = list(accounts)
        self.instruction = instruction
        self.scope = scope
        self.position = 0

    def next(self, identity: str) -> AccountInfo:
        if self.position >= len(self._accounts):
            raise MissingAccountError(self.instruction, identity, self.position, len(self._accounts))
        info = self._accounts[self.position]
        self.position += 1
        if self.scope is not None:
            self.scope.handles[identity] = info
        return info


def build_resource(
    cls: type[NautilusObject],
    program_id: Pubkey,
    scope: DispatchScope,
    read_roles: Mapping[str, AccountInfo],
    create_roles: Mapping[str, AccountInfo],
    capability: Capability,
) -> Any:
    """Rebuild one resource argument and wrap it as its parameter declares."""
    obj = cls.from_accounts(program_id, read_roles, scope=scope, load=not capability.create)
    scope.adopt(obj)
    if capability.create:
        return Create(obj, create_roles)
    if capability.signer:
        return Signer(obj)
    if capability.mut:
        return Mut(obj)
    return obj


class Interpreter:
    """Executes a `Dispatcher` directly, without rendering source."""

    def __init__(self, dispatcher: Dispatcher, module: ModuleType) -> None:
        self.dispatcher = dispatcher
        self.module = module
        self._classes = dispatcher.report.resource_classes()
        self._defined = dispatcher.report.defined_types()

    def process_instruction(self, program_id: Pubkey, accounts: Sequence[AccountInfo], data: bytes) -> Any:
        reader = InstructionReader(data)
        tag = reader.discriminant()
        variant = self.dispatcher.variant_for(tag)
        if variant is None:
            raise UnknownInstructionError(tag)
        msg(f"Instruction: {variant.name}")
        values = reader.arguments(variant.name, variant.layout, self._defined)
        return self._run(variant, program_id, accounts, dict(zip((a.name for a in variant.args), values)))

    def _run(
        self,
        variant: Variant,
        program_id: Pubkey,
        accounts: Sequence[AccountInfo],
        values: dict[str, Any],
    ) -> Any:
        handler = getattr(self.module, variant.handler)
        with DispatchScope(variant.name) as scope:
            cursor = AccountCursor(accounts, variant.name, scope)
            consumed = {slot.identity: cursor.next(slot.identity) for slot in variant.accounts}
            call_args = []
            for step in variant.call_plan:
                if isinstance(step, PassArgStep):
                    call_args.append(values[step.param])
                    continue
                call_args.append(
                    build_resource(
                        self._classes[step.type_id],
                        program_id,
                        scope,
                        {slot.role: consumed[slot.identity] for slot in step.read},
                        {slot.role: consumed[slot.identity] for slot in step.create},
                        step.capability,
                    )
                )
            logger.debug("%s: %d accounts consumed", variant.name, cursor.position)
            return handler(*call_args)
