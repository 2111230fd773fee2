"""
Discovery pass over a program module.

Collects, in one sweep of the module namespace:
- resource types: non-abstract `NautilusObject` subclasses, numbered in the
  order they appear;
- plain types: dataclasses and enums defined by the program itself;
- handlers: public functions defined by the program, in source order.

Types are registered by class object, so a class bound under two names is
registered once and two classes sharing a name never collide.
"""

from __future__ import annotations

import dataclasses
import enum
import inspect
import logging
from types import ModuleType
from typing import Any

from nautilus_gen.codec import CodecError, struct_layout
from nautilus_gen.errors import InvalidTypeError, UndeclaredRequirementsError
from nautilus_gen.ir import DiscoveryReport, HandlerSource, PlainType, ResourceType
from nautilus_gen.objects.base import NautilusObject
from nautilus_gen.objects.record import Record

logger = logging.getLogger(__name__)


def _is_resource_class(obj: Any) -> bool:
    return isinstance(obj, type) and issubclass(obj, NautilusObject) and not obj.is_abstract()


def _is_plain_class(obj: Any, module_name: str) -> bool:
    if not isinstance(obj, type) or obj.__module__ != module_name:
        return False
    if issubclass(obj, NautilusObject):
        return False
    return dataclasses.is_dataclass(obj) or issubclass(obj, enum.Enum)


def _is_handler(attr: str, obj: Any, module_name: str) -> bool:
    return inspect.isfunction(obj) and obj.__module__ == module_name and not attr.startswith("_")


def _resource_type(type_id: int, cls: type[NautilusObject]) -> ResourceType:
    requires = cls.__nautilus_requires__
    if requires is None:
        raise UndeclaredRequirementsError(cls.__name__)
    fields: tuple = ()
    if issubclass(cls, Record):
        try:
            fields = tuple(cls.record_layout())
        except (CodecError, NameError) as e:
            raise InvalidTypeError(cls.__name__, str(e)) from e
    create = cls.__nautilus_create_requires__
    return ResourceType(
        type_id=type_id,
        name=cls.__name__,
        module=cls.__module__,
        qualname=cls.__qualname__,
        requires=tuple(requires),
        create_requires=tuple(create) if create is not None else None,
        pda=bool(cls.__nautilus_pda__),
        fields=fields,
    )


def _plain_type(type_id: int, cls: type, plain_classes: list[type]) -> PlainType:
    if issubclass(cls, enum.Enum):
        members = list(cls)
        if len(members) > 256:
            raise InvalidTypeError(cls.__name__, f"{len(members)} variants do not fit a u8 index")
        variants = tuple(m.name for m in members)
        return PlainType(type_id, cls.__name__, cls.__module__, cls.__qualname__, "enum", variants=variants)
    try:
        fields = tuple(struct_layout(cls, plain_classes))
    except (CodecError, NameError) as e:
        raise InvalidTypeError(cls.__name__, str(e)) from e
    return PlainType(type_id, cls.__name__, cls.__module__, cls.__qualname__, "struct", fields=fields)


def scan_module(module: ModuleType) -> DiscoveryReport:
    """Discover resource types, plain types and handlers of `module`."""
    module_name = module.__name__
    resource_classes: list[type[NautilusObject]] = []
    plain_classes: list[type] = []
    handlers: list[HandlerSource] = []

    for attr, obj in vars(module).items():
        if _is_resource_class(obj):
            if obj not in resource_classes:
                resource_classes.append(obj)
        elif _is_plain_class(obj, module_name):
            if obj not in plain_classes:
                plain_classes.append(obj)
        elif _is_handler(attr, obj, module_name):
            handlers.append(
                HandlerSource(
                    name=attr,
                    module=module_name,
                    qualname=obj.__qualname__,
                    lineno=obj.__code__.co_firstlineno,
                    func=obj,
                )
            )

    resource_types = tuple(_resource_type(i, cls) for i, cls in enumerate(resource_classes))
    plain_types = tuple(_plain_type(i, cls, plain_classes) for i, cls in enumerate(plain_classes))
    ordered = tuple(sorted(handlers, key=lambda h: h.lineno))

    names = [t.name for t in plain_types]
    clashes = sorted({n for n in names if names.count(n) > 1})
    if clashes:
        raise InvalidTypeError(clashes[0], "plain type name is defined more than once")

    logger.debug(
        "Discovered %s: %d resource types, %d plain types, %d handlers",
        module_name,
        len(resource_types),
        len(plain_types),
        len(ordered),
    )
    return DiscoveryReport(
        module=module_name,
        resource_types=resource_types,
        plain_types=plain_types,
        handlers=ordered,
        registry={cls: i for i, cls in enumerate(resource_classes)},
        plain_registry={cls: i for i, cls in enumerate(plain_classes)},
    )
