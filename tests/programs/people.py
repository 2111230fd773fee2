"""A small table program: an index, a `Person` table and a few token handlers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nautilus_gen.objects import Create, Index, IndexData, Mut, Nft, Pubkey, Record, Signer, Wallet, u8, u32, u64


class Status(Enum):
    ACTIVE = 0
    RETIRED = 1


@dataclass
class Profile:
    nickname: str
    age: u8


class Person(Record):
    id: u32
    name: str
    authority: Pubkey
    status: Status


def initialize(index: Create[Index]) -> None:
    index.account().data[:] = IndexData(index={Person.table_name(): 0}).encode()


def create_person(new_person: Create[Person], index: Mut[Index], name: str, authority: Pubkey, status: Status) -> int:
    person_id = index.data.add_record(Person.table_name())
    index.save()
    new_person.write(id=person_id, name=name, authority=authority, status=status)
    return person_id


def rename_person(person: Mut[Person], name: str) -> None:
    person.write(name=name)


def get_person(person: Person) -> dict:
    return person.data


def transfer_note(from_wallet: Signer[Wallet], to_wallet: Mut[Wallet], amount: u64, memo: Optional[str]) -> tuple:
    return (from_wallet.key, to_wallet.key, amount, memo)


def set_profile(person: Mut[Person], profile: Profile, tags: list[str]) -> tuple:
    return (person.key, profile, tags)


def mint_nft(nft: Create[Nft], title: str) -> dict:
    return {
        "mint": nft.mint.key,
        "metadata": nft.metadata.key,
        "mint_authority": nft.extras["mint_authority"].key,
        "fee_payer": nft.fee_payer.key,
        "title": title,
    }


def _helper() -> None:
    """Private; never an instruction."""
