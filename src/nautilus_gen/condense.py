from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from nautilus_gen.ir import RequiredAccount


def condense(groups: Iterable[Iterable[RequiredAccount]]) -> tuple[RequiredAccount, ...]:
    """
    Flatten per-argument requirement lists into one de-duplicated list.

    The first occurrence of each identity wins and keeps its position, kind
    and description. A later duplicate only contributes its `is_mut` and
    `is_signer` flags, so the one consumed account satisfies every use.
    """
    position: dict[str, int] = {}
    out: list[RequiredAccount] = []
    for group in groups:
        for account in group:
            i = position.get(account.identity)
            if i is None:
                position[account.identity] = len(out)
                out.append(account)
                continue
            kept = out[i]
            if (account.is_mut and not kept.is_mut) or (account.is_signer and not kept.is_signer):
                out[i] = replace(
                    kept,
                    is_mut=kept.is_mut or account.is_mut,
                    is_signer=kept.is_signer or account.is_signer,
                )
    return tuple(out)
