"""Discovery: resource types, plain types and handlers of a program module."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass

import pytest
from conftest import make_program

from nautilus_gen.discovery import scan_module
from nautilus_gen.errors import InvalidTypeError, UndeclaredRequirementsError
from nautilus_gen.objects import Index, NautilusObject, Nft, Record, Wallet, u8


def test_people_report(people) -> None:
    report = scan_module(people)

    assert [t.name for t in report.resource_types] == ["Index", "Nft", "Wallet", "Person"]
    assert [t.type_id for t in report.resource_types] == [0, 1, 2, 3]
    assert [t.name for t in report.plain_types] == ["Status", "Profile"]
    assert [h.name for h in report.handlers] == [
        "initialize",
        "create_person",
        "rename_person",
        "get_person",
        "transfer_note",
        "set_profile",
        "mint_nft",
    ]


def test_registry_is_keyed_by_class(people) -> None:
    report = scan_module(people)
    assert report.resource_id_of(people.Person) == 3
    assert report.resource_id_of(Index) == 0
    assert report.resource_id_of(Record) is None
    assert report.resource_id_of("Person") is None


def test_record_fields_and_declarations(people) -> None:
    report = scan_module(people)
    person = report.resource(3)
    assert person.fields == (
        ("id", "u32"),
        ("name", "string"),
        ("authority", "publicKey"),
        ("status", {"defined": "Status"}),
    )
    assert person.pda
    assert [d.role for d in person.requires] == ["index"]
    assert [d.role for d in person.create_requires] == ["fee_payer", "system_program", "rent"]

    nft = report.resource(1)
    assert not nft.pda
    assert [d.role for d in nft.requires] == ["metadata", "token_program", "token_metadata_program"]


def test_plain_type_shapes(people) -> None:
    report = scan_module(people)
    status, profile = report.plain_types
    assert status.kind == "enum"
    assert status.variants == ("ACTIVE", "RETIRED")
    assert profile.kind == "struct"
    assert profile.fields == (("nickname", "string"), ("age", "u8"))


def test_report_is_immutable(people) -> None:
    report = scan_module(people)
    with pytest.raises(FrozenInstanceError):
        report.handlers = ()  # type: ignore[misc]
    assert isinstance(report.resource_types, tuple)


def test_scan_is_deterministic(people) -> None:
    assert scan_module(people) == scan_module(people)


def test_aliased_class_is_registered_once() -> None:
    module = make_program("aliases", Wallet=Wallet, Purse=Wallet, Nft=Nft)
    report = scan_module(module)
    assert [t.name for t in report.resource_types] == ["Wallet", "Nft"]


def test_same_name_classes_do_not_collide() -> None:
    class Thing(NautilusObject):
        __nautilus_requires__ = ()

    first = Thing

    class Thing(NautilusObject):  # noqa: F811
        __nautilus_requires__ = ()

    module = make_program("shadowed", A=first, B=Thing)
    report = scan_module(module)
    assert report.resource_id_of(first) == 0
    assert report.resource_id_of(Thing) == 1


def test_undeclared_requirements_name_the_type() -> None:
    class Loose(NautilusObject):
        pass

    with pytest.raises(UndeclaredRequirementsError) as exc_info:
        scan_module(make_program("loose", Loose))
    assert exc_info.value.data == {"type": "Loose"}
    assert exc_info.value.code == 1002


def test_record_with_unencodable_field() -> None:
    class Bad(Record):
        payload: dict

    with pytest.raises(InvalidTypeError, match="Bad"):
        scan_module(make_program("bad_record", Bad))


def test_only_public_functions_of_the_module_are_handlers() -> None:
    def visible(x: u8) -> None: ...

    def _hidden(x: u8) -> None: ...

    report = scan_module(make_program("funcs", visible, _hidden, imported=len))
    assert [h.name for h in report.handlers] == ["visible"]


def test_plain_types_must_be_defined_in_the_program() -> None:
    @dataclass
    class Local:
        a: u8

    # defined by this test module, so not a plain type of "elsewhere"
    report = scan_module(make_program("elsewhere", Local))
    assert report.plain_types == ()
