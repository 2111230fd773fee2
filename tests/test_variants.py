"""Variant building: payload shape, condensed accounts, call plans, discriminants."""

from __future__ import annotations

import pytest
from conftest import make_program, variant_named
from hypothesis import given, settings
from hypothesis import strategies as st

from nautilus_gen.errors import DuplicateInstructionError, MissingConfigurationError, TooManyInstructionsError
from nautilus_gen.ir import (
    Capability,
    DiscoveryReport,
    Handler,
    PassArgStep,
    PlainArgument,
    ReconstructStep,
    ResourceArgument,
    ResourceType,
)
from nautilus_gen.objects import Create, NautilusObject, Wallet
from nautilus_gen.pipeline import analyze
from nautilus_gen.variants import build_dispatcher, build_variant, variant_name


def _ids(variant) -> list[str]:
    return [a.identity for a in variant.accounts]


def _empty_report(*resources: ResourceType) -> DiscoveryReport:
    return DiscoveryReport(module="m", resource_types=tuple(resources), plain_types=(), handlers=())


def _handler(name: str, *params) -> Handler:
    return Handler(name=name, module="m", qualname=name, params=tuple(params))


@pytest.mark.parametrize(
    "handler,expected",
    [("create_person", "CreatePerson"), ("initialize", "Initialize"), ("mint_nft_v2", "MintNftV2")],
)
def test_variant_name(handler: str, expected: str) -> None:
    assert variant_name(handler) == expected


def test_scenario_a_one_plain_one_read_only(scenario_dispatcher) -> None:
    deposit = variant_named(scenario_dispatcher, "Deposit")
    assert deposit.discriminant == 0
    assert _ids(deposit) == ["vault"]
    assert deposit.layout == [("amount", "u64")]
    assert deposit.call_plan == (
        PassArgStep(param="amount"),
        ReconstructStep(param="vault", type_id=1, capability=Capability(), read=deposit.accounts),
    )


def test_scenario_b_create_plus_signer_of_same_type(scenario_dispatcher) -> None:
    open_vault = variant_named(scenario_dispatcher, "OpenVault")
    assert _ids(open_vault) == ["vault", "fee_payer", "system_program"]
    vault, fee_payer, _ = open_vault.accounts
    assert (vault.is_mut, vault.is_signer) == (True, True)
    assert (fee_payer.is_mut, fee_payer.is_signer) == (True, True)


def test_scenario_c_shared_slot_consumed_once(scenario_dispatcher) -> None:
    open_two = variant_named(scenario_dispatcher, "OpenTwo")
    identities = _ids(open_two)
    assert identities == ["first", "system_program", "fee_payer", "rent", "second"]
    assert identities.count("system_program") == 1


def test_call_plan_follows_parameter_order(people_dispatcher) -> None:
    create = variant_named(people_dispatcher, "CreatePerson")
    assert [s.param for s in create.call_plan] == ["new_person", "index", "name", "authority", "status"]
    assert [type(s).__name__ for s in create.call_plan] == [
        "ReconstructStep",
        "ReconstructStep",
        "PassArgStep",
        "PassArgStep",
        "PassArgStep",
    ]
    assert _ids(create) == ["new_person", "index", "fee_payer", "system_program", "rent"]
    assert [name for name, _ in create.layout] == ["name", "authority", "status"]


def test_create_step_splits_read_and_create_slots(people_dispatcher) -> None:
    mint = variant_named(people_dispatcher, "MintNft")
    step = mint.call_plan[0]
    assert [a.role for a in step.read] == ["self", "metadata", "token_program", "token_metadata_program"]
    assert [a.role for a in step.create] == ["mint_authority", "fee_payer", "system_program", "rent"]
    assert _ids(mint) == [
        "nft",
        "nft_metadata",
        "token_program",
        "token_metadata_program",
        "nft_mint_authority",
        "fee_payer",
        "system_program",
        "rent",
    ]


def test_discriminants_follow_declaration_order(people_dispatcher) -> None:
    assert [(v.discriminant, v.name) for v in people_dispatcher.variants] == [
        (0, "Initialize"),
        (1, "CreatePerson"),
        (2, "RenamePerson"),
        (3, "GetPerson"),
        (4, "TransferNote"),
        (5, "SetProfile"),
        (6, "MintNft"),
    ]


def test_missing_capability_configuration() -> None:
    thing = ResourceType(0, "Thing", "m", "Thing", requires=(), create_requires=None, pda=False)
    handler = _handler("use_thing", ResourceArgument(name="thing", type_id=0, capability=None))
    with pytest.raises(MissingConfigurationError) as exc_info:
        build_variant(0, handler, _empty_report(thing))
    assert exc_info.value.data["handler"] == "use_thing"
    assert exc_info.value.data["type"] == "Thing"


@pytest.mark.parametrize("create_requires", [None, ()])
def test_create_over_type_without_creation_path(create_requires) -> None:
    sysvar = ResourceType(0, "Clock", "m", "Clock", requires=(), create_requires=create_requires, pda=False)
    handler = _handler("make_clock", ResourceArgument(name="clock", type_id=0, capability=Capability(create=True)))
    with pytest.raises(MissingConfigurationError, match="no creation requirements"):
        build_variant(0, handler, _empty_report(sysvar))


class Bare(NautilusObject):
    __nautilus_requires__ = ()
    __nautilus_create_requires__ = ()


def test_empty_creation_list_is_not_creatable() -> None:
    def make_bare(thing: Create[Bare]) -> None: ...

    module = make_program("bare_program", make_bare, Bare=Bare)
    with pytest.raises(MissingConfigurationError) as exc_info:
        analyze(module, "bare")
    assert exc_info.value.data["handler"] == "make_bare"
    assert exc_info.value.data["type"] == "Bare"


def test_read_only_self_slot_takes_shared_flags() -> None:
    def fund(fee_payer: Wallet, new_wallet: Create[Wallet]) -> None: ...

    (variant,) = analyze(make_program("funding", fund, Wallet=Wallet), "funding").variants
    assert _ids(variant) == ["fee_payer", "system_program", "new_wallet", "rent"]
    payer = variant.accounts[0]
    assert (payer.role, payer.is_mut, payer.is_signer) == ("self", True, True)


def test_duplicate_instruction_names() -> None:
    with pytest.raises(DuplicateInstructionError) as exc_info:
        build_dispatcher(_empty_report(), [_handler("do_it"), _handler("do__it")], "p")
    assert exc_info.value.data["handlers"] == ["do_it", "do__it"]


def test_too_many_instructions() -> None:
    handlers = [_handler(f"h{i}") for i in range(257)]
    with pytest.raises(TooManyInstructionsError):
        build_dispatcher(_empty_report(), handlers, "p")


@given(count=st.integers(min_value=0, max_value=256), args=st.integers(min_value=0, max_value=3))
@settings(deadline=None, max_examples=30)
def test_discriminants_are_unique(count: int, args: int) -> None:
    params = [PlainArgument(name=f"a{j}", idl_type="u8") for j in range(args)]
    handlers = [_handler(f"handler_{i}", *params) for i in range(count)]
    dispatcher = build_dispatcher(_empty_report(), handlers, "p")
    discriminants = [v.discriminant for v in dispatcher.variants]
    assert len(set(discriminants)) == len(discriminants) == count
    assert all(0 <= d <= 255 for d in discriminants)
    for d in discriminants:
        assert dispatcher.variant_for(d).discriminant == d
