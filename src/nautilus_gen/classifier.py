"""
Signature classification of handler parameters.

A parameter is either a resource argument (a discovered resource type, bare or
inside exactly one capability wrapper) or a plain argument carried in the
instruction payload.
"""

from __future__ import annotations

import inspect
import re
import typing
from typing import Any

from nautilus_gen.codec import idl_type_of
from nautilus_gen.errors import (
    InvalidSignatureError,
    UnknownTypeError,
    UnsupportedTypeError,
    WrapperShapeError,
)
from nautilus_gen.ir import (
    Capability,
    DiscoveryReport,
    Handler,
    HandlerParameter,
    HandlerSource,
    PlainArgument,
    ResourceArgument,
)
from nautilus_gen.objects.base import Create, Mut, NautilusObject, Signer

_WRAPPERS: dict[type, Capability] = {
    Create: Capability(create=True),
    Signer: Capability(signer=True),
    Mut: Capability(mut=True),
}


def _describe(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return repr(annotation).replace("typing.", "").replace("nautilus_gen.objects.base.", "")


def _is_wrapper(annotation: Any) -> bool:
    return (isinstance(annotation, type) and annotation in _WRAPPERS) or typing.get_origin(annotation) in _WRAPPERS


def classify_parameter(handler: str, name: str, annotation: Any, report: DiscoveryReport) -> HandlerParameter:
    """Classify one resolved parameter annotation."""
    if isinstance(annotation, type) and annotation in _WRAPPERS:
        raise WrapperShapeError(handler, name, f"`{annotation.__name__}` needs exactly one resource type")

    origin = typing.get_origin(annotation)
    if origin in _WRAPPERS:
        args = typing.get_args(annotation)
        if len(args) != 1:
            raise WrapperShapeError(handler, name, f"`{origin.__name__}` takes one type, got {len(args)}")
        inner = args[0]
        if _is_wrapper(inner):
            raise WrapperShapeError(handler, name, f"nested capability wrappers: {_describe(annotation)}")
        type_id = report.resource_id_of(inner)
        if type_id is None:
            raise UnknownTypeError(handler, name, _describe(inner))
        return ResourceArgument(name=name, type_id=type_id, capability=_WRAPPERS[origin])

    type_id = report.resource_id_of(annotation)
    if type_id is not None:
        return ResourceArgument(name=name, type_id=type_id, capability=Capability())
    if isinstance(annotation, type) and issubclass(annotation, NautilusObject):
        # resource class the program never brought into its namespace
        raise UnknownTypeError(handler, name, annotation.__name__)

    idl_type = idl_type_of(annotation, report.plain_registry)
    if idl_type is None:
        raise UnsupportedTypeError(handler, name, _describe(annotation))
    return PlainArgument(name=name, idl_type=idl_type)


def _unresolved_parameter(sig: inspect.Signature, missing: str) -> str:
    pattern = re.compile(rf"\b{re.escape(missing)}\b")
    for param in sig.parameters.values():
        if isinstance(param.annotation, str) and pattern.search(param.annotation):
            return param.name
    return "return"


def classify_handler(source: HandlerSource, report: DiscoveryReport) -> Handler:
    """Classify every parameter of a discovered handler, in declaration order."""
    sig = inspect.signature(source.func)
    try:
        hints = typing.get_type_hints(source.func, include_extras=True)
    except NameError as e:
        missing = e.name or str(e)
        raise UnknownTypeError(source.name, _unresolved_parameter(sig, missing), missing) from e

    params: list[HandlerParameter] = []
    for param in sig.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise InvalidSignatureError(source.name, f"variadic parameter `{param.name}` cannot be dispatched")
        if param.kind is inspect.Parameter.KEYWORD_ONLY:
            raise InvalidSignatureError(source.name, f"keyword-only parameter `{param.name}` cannot be dispatched")
        if param.name not in hints:
            raise InvalidSignatureError(source.name, f"parameter `{param.name}` has no type annotation")
        params.append(classify_parameter(source.name, param.name, hints[param.name], report))

    return Handler(name=source.name, module=source.module, qualname=source.qualname, params=tuple(params))
