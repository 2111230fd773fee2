"""Error types for code generation and instruction dispatch.

Two disjoint hierarchies:

- `GenerationError`: raised while analysing a program or rendering its
  artifacts. Always fatal for the whole build; nothing is written.
- `RuntimeDispatchError`: raised by a dispatcher for a single instruction.
  Terminal for that call only; retrying is the caller's business.

Both carry a stable numeric code and a data dict so that they can be reported
as structured diagnostics.
"""

from __future__ import annotations

from typing import Any


class NautilusError(Exception):
    """Shared shape of every error raised by nautilus_gen."""

    def __init__(self, code: int, message: str, data: dict[str, Any] | None = None):
        self.code = code
        self.message = message
        self.data = data or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


# ---------------------------------------------------------------------------
# Generation-time errors
# ---------------------------------------------------------------------------


class GenerationError(NautilusError):
    """Base class for build-time failures."""


class ManifestError(GenerationError):
    """Project manifest is missing or lacks required metadata."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code=1001,
            message=f"Invalid manifest {path}: {reason}",
            data={"path": path, "reason": reason},
        )


class UndeclaredRequirementsError(GenerationError):
    """A resource type never declared its account requirements."""

    def __init__(self, type_name: str):
        super().__init__(
            code=1002,
            message=f"Resource type `{type_name}` does not declare its required accounts",
            data={"type": type_name},
        )


class WrapperShapeError(GenerationError):
    """A capability wrapper was used in a shape the classifier does not accept."""

    def __init__(self, handler: str, param: str, detail: str):
        super().__init__(
            code=1003,
            message=f"Handler `{handler}` parameter `{param}`: {detail}",
            data={"handler": handler, "param": param, "detail": detail},
        )


class UnknownTypeError(GenerationError):
    """A parameter references a type that discovery never saw."""

    def __init__(self, handler: str, param: str, type_name: str):
        super().__init__(
            code=1004,
            message=f"Handler `{handler}` parameter `{param}` references undiscovered type `{type_name}`",
            data={"handler": handler, "param": param, "type": type_name},
        )


class UnsupportedTypeError(GenerationError):
    """A plain argument type has no wire encoding."""

    def __init__(self, handler: str, param: str, type_name: str):
        super().__init__(
            code=1005,
            message=f"Handler `{handler}` parameter `{param}` has unsupported argument type `{type_name}`",
            data={"handler": handler, "param": param, "type": type_name},
        )


class InvalidSignatureError(GenerationError):
    """A handler signature cannot be turned into an instruction."""

    def __init__(self, handler: str, detail: str):
        super().__init__(
            code=1006,
            message=f"Handler `{handler}`: {detail}",
            data={"handler": handler, "detail": detail},
        )


class MissingConfigurationError(GenerationError):
    """A resource argument reached the variant builder without a usable configuration."""

    def __init__(self, handler: str, param: str, type_name: str, detail: str):
        super().__init__(
            code=1007,
            message=f"Handler `{handler}` parameter `{param}` ({type_name}): {detail}",
            data={"handler": handler, "param": param, "type": type_name, "detail": detail},
        )


class DuplicateInstructionError(GenerationError):
    """Two handlers map onto the same instruction name."""

    def __init__(self, name: str, handlers: list[str]):
        super().__init__(
            code=1008,
            message=f"Instruction `{name}` is produced by more than one handler: {', '.join(handlers)}",
            data={"instruction": name, "handlers": handlers},
        )


class TooManyInstructionsError(GenerationError):
    """The discriminant space (u8) is exhausted."""

    def __init__(self, count: int):
        super().__init__(
            code=1009,
            message=f"{count} handlers found; at most 256 instructions fit a u8 discriminant",
            data={"count": count},
        )


class InvalidTypeError(GenerationError):
    """A discovered type cannot be described on the wire."""

    def __init__(self, type_name: str, detail: str):
        super().__init__(
            code=1010,
            message=f"Type `{type_name}`: {detail}",
            data={"type": type_name, "detail": detail},
        )


class ProgramImportError(GenerationError):
    """The program module could not be imported."""

    def __init__(self, module: str, reason: str):
        super().__init__(
            code=1011,
            message=f"Cannot import program module `{module}`: {reason}",
            data={"module": module, "reason": reason},
        )


class SchemaConsistencyError(RuntimeError):
    """The IDL disagrees with the dispatcher it was built from.

    This is an internal bug, not a user error, so it deliberately sits outside
    the `GenerationError` hierarchy.
    """


# ---------------------------------------------------------------------------
# Runtime dispatch errors
# ---------------------------------------------------------------------------


class RuntimeDispatchError(NautilusError):
    """Base class for per-instruction dispatch failures."""


class UnknownInstructionError(RuntimeDispatchError):
    def __init__(self, discriminant: int | None):
        shown = "<empty payload>" if discriminant is None else str(discriminant)
        super().__init__(
            code=2001,
            message=f"Unknown instruction discriminant: {shown}",
            data={"discriminant": discriminant},
        )


class PayloadDecodeError(RuntimeDispatchError):
    def __init__(self, instruction: str, reason: str):
        super().__init__(
            code=2002,
            message=f"Failed to decode arguments for {instruction}: {reason}",
            data={"instruction": instruction, "reason": reason},
        )


class MissingAccountError(RuntimeDispatchError):
    def __init__(self, instruction: str, account: str, position: int, supplied: int):
        super().__init__(
            code=2003,
            message=(
                f"{instruction}: not enough accounts (needed `{account}` at position {position}, "
                f"{supplied} supplied)"
            ),
            data={"instruction": instruction, "account": account, "position": position, "supplied": supplied},
        )


class RecordDecodeError(RuntimeDispatchError):
    def __init__(self, type_name: str, key: str, reason: str):
        super().__init__(
            code=2004,
            message=f"Could not parse {type_name} data from {key}: {reason}",
            data={"type": type_name, "key": key, "reason": reason},
        )


class ScopeClosedError(RuntimeDispatchError):
    def __init__(self, type_name: str):
        super().__init__(
            code=2005,
            message=f"{type_name} was used after the dispatch call that created it returned",
            data={"type": type_name},
        )


class InsertRecordError(RuntimeDispatchError):
    def __init__(self, table: str):
        super().__init__(
            code=2006,
            message=f"Failed to write new record: table `{table}` is not tracked by the index",
            data={"table": table},
        )
