"""
Source backend: renders a `Dispatcher` into a standalone Python module.

Rendering reads the IR only. The generated module imports the program and the
resource classes by module path and qualified name, and delegates decoding,
account consumption and object rebuilding to `nautilus_gen.runtime`.
"""

from __future__ import annotations

from nautilus_gen.ir import Capability, Dispatcher, PassArgStep, ReconstructStep, ResourceType, Variant

_HEADER = '''\
"""Instruction dispatcher for `{program}` {version}.

Generated by nautilus-gen from `{module}`. Do not edit.
"""

from __future__ import annotations

import {module} as program
from nautilus_gen.errors import UnknownInstructionError
from nautilus_gen.ir import Capability
from nautilus_gen.runtime import AccountCursor, DispatchScope, InstructionReader, build_resource, msg
'''


def _class_alias(resource: ResourceType) -> str:
    return f"{resource.name}_t{resource.type_id}"


def _module_alias(index: int) -> str:
    return f"_types_{index}"


def _capability_literal(capability: Capability) -> str:
    return f"Capability(create={capability.create}, signer={capability.signer}, mut={capability.mut})"


def _role_map(step_slots: tuple) -> str:
    if not step_slots:
        return "{}"
    items = ", ".join(f'"{slot.role}": a_{slot.identity}' for slot in step_slots)
    return "{" + items + "}"


def _layout_name(variant: Variant) -> str:
    return f"_ARGS_{variant.discriminant}"


def _render_imports(dispatcher: Dispatcher) -> list[str]:
    lines: list[str] = []
    modules = sorted({r.module for r in dispatcher.report.resource_types if r.module != dispatcher.module})
    aliases = {m: _module_alias(i) for i, m in enumerate(modules)}
    for m in modules:
        lines.append(f"import {m} as {aliases[m]}")
    lines.append("")
    for r in dispatcher.report.resource_types:
        owner = "program" if r.module == dispatcher.module else aliases[r.module]
        lines.append(f"{_class_alias(r)} = {owner}.{r.qualname}")
    return lines


def _render_constants(dispatcher: Dispatcher) -> list[str]:
    lines = [f"PROGRAM = {dispatcher.program!r}", f"VERSION = {dispatcher.version!r}", ""]
    lines.append("DEFINED = {")
    for t in dispatcher.report.plain_types:
        lines.append(f'    "{t.name}": program.{t.qualname},')
    lines.append("}")
    lines.append("")
    for v in dispatcher.variants:
        lines.append(f"{_layout_name(v)} = {v.layout!r}")
    return lines


def _render_step(step: ReconstructStep, dispatcher: Dispatcher) -> list[str]:
    resource = dispatcher.report.resource(step.type_id)
    return [
        f"        p_{step.param} = build_resource(",
        f"            {_class_alias(resource)},",
        "            program_id,",
        "            scope,",
        f"            {_role_map(step.read)},",
        f"            {_role_map(step.create)},",
        f"            {_capability_literal(step.capability)},",
        "        )",
    ]


def render_variant(variant: Variant, dispatcher: Dispatcher) -> list[str]:
    lines = [
        f"def _dispatch_{variant.handler}(program_id, accounts, reader):",
        f'    """{variant.name} (discriminant {variant.discriminant})."""',
        f'    msg("Instruction: {variant.name}")',
    ]
    if variant.args:
        names = ", ".join(f"v_{a.name}" for a in variant.args)
        unpack = f"({names},)" if len(variant.args) == 1 else names
        lines.append(f'    {unpack} = reader.arguments("{variant.name}", {_layout_name(variant)}, DEFINED)')
    else:
        lines.append(f'    reader.arguments("{variant.name}", {_layout_name(variant)}, DEFINED)')
    lines.append(f'    with DispatchScope("{variant.name}") as scope:')
    lines.append(f'        cursor = AccountCursor(accounts, "{variant.name}", scope)')
    for slot in variant.accounts:
        lines.append(f'        a_{slot.identity} = cursor.next("{slot.identity}")')
    call_args: list[str] = []
    for step in variant.call_plan:
        if isinstance(step, PassArgStep):
            call_args.append(f"v_{step.param}")
        else:
            lines.extend(_render_step(step, dispatcher))
            call_args.append(f"p_{step.param}")
    lines.append(f"        return program.{variant.handler}({', '.join(call_args)})")
    return lines


def render_dispatcher(dispatcher: Dispatcher) -> str:
    """Render the full dispatcher module source."""
    lines = _HEADER.format(program=dispatcher.program, version=dispatcher.version, module=dispatcher.module).split("\n")
    lines.extend(_render_imports(dispatcher))
    lines.extend(["", ""])
    lines.extend(_render_constants(dispatcher))
    for v in dispatcher.variants:
        lines.extend(["", ""])
        lines.extend(render_variant(v, dispatcher))
    lines.extend(["", "", "_ROUTES = {"])
    for v in dispatcher.variants:
        lines.append(f"    {v.discriminant}: _dispatch_{v.handler},")
    lines.append("}")
    lines.extend(
        [
            "",
            "",
            "def process_instruction(program_id, accounts, data):",
            "    reader = InstructionReader(data)",
            "    discriminant = reader.discriminant()",
            "    route = _ROUTES.get(discriminant)",
            "    if route is None:",
            "        raise UnknownInstructionError(discriminant)",
            "    return route(program_id, accounts, reader)",
            "",
        ]
    )
    return "\n".join(lines)
