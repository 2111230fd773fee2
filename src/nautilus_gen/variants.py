"""
Variant building: one dispatch variant per classified handler.

A variant carries everything the backends need and nothing else: the wire
payload shape, the condensed account list and the call plan reproducing the
handler's parameter order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from nautilus_gen.condense import condense
from nautilus_gen.constants import MAX_INSTRUCTIONS
from nautilus_gen.errors import DuplicateInstructionError, MissingConfigurationError, TooManyInstructionsError
from nautilus_gen.ir import (
    CallStep,
    DiscoveryReport,
    Dispatcher,
    Handler,
    PassArgStep,
    PlainArgument,
    ReconstructStep,
    RequiredAccount,
    Variant,
)
from nautilus_gen.resolver import resolve_requirements

logger = logging.getLogger(__name__)


def variant_name(handler_name: str) -> str:
    """PascalCase instruction name for a snake_case handler name."""
    return "".join(part[:1].upper() + part[1:] for part in handler_name.split("_") if part)


def build_variant(discriminant: int, handler: Handler, report: DiscoveryReport) -> Variant:
    groups: list[tuple[RequiredAccount, ...]] = []
    plan: list[CallStep] = []
    for param in handler.params:
        if isinstance(param, PlainArgument):
            plan.append(PassArgStep(param=param.name))
            continue
        resource = report.resource(param.type_id)
        if param.capability is None:
            raise MissingConfigurationError(handler.name, param.name, resource.name, "no capability configuration")
        if param.capability.create and not resource.creatable:
            raise MissingConfigurationError(
                handler.name, param.name, resource.name, "type declares no creation requirements"
            )
        resolution = resolve_requirements(resource, param.name, param.capability)
        groups.append(resolution.all)
        plan.append(
            ReconstructStep(
                param=param.name,
                type_id=param.type_id,
                capability=param.capability,
                read=resolution.read,
                create=resolution.create,
            )
        )

    return Variant(
        discriminant=discriminant,
        name=variant_name(handler.name),
        handler=handler.name,
        handler_qualname=handler.qualname,
        args=handler.plain_args,
        accounts=condense(groups),
        call_plan=tuple(plan),
    )


def build_dispatcher(
    report: DiscoveryReport,
    handlers: Sequence[Handler],
    program: str,
    version: str = "0.0.0",
) -> Dispatcher:
    """Build every variant; discriminants follow handler declaration order."""
    if len(handlers) > MAX_INSTRUCTIONS:
        raise TooManyInstructionsError(len(handlers))

    by_name: dict[str, list[str]] = {}
    for handler in handlers:
        by_name.setdefault(variant_name(handler.name), []).append(handler.name)
    for name, owners in by_name.items():
        if len(owners) > 1:
            raise DuplicateInstructionError(name, owners)

    variants = tuple(build_variant(i, h, report) for i, h in enumerate(handlers))
    for v in variants:
        logger.debug("Variant %d %s: %d accounts, %d args", v.discriminant, v.name, len(v.accounts), len(v.args))
    return Dispatcher(program=program, version=version, module=report.module, variants=variants, report=report)
