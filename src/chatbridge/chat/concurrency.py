"""Fan-out/fan-in helpers that never abort on a single failing branch."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one branch: either a value or the exception it raised."""

    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(awaitables: Iterable[Awaitable[T]]) -> list[Settled[T]]:
    """Await every branch concurrently and report each outcome in input order.

    A failing branch yields a ``Settled`` carrying its error and the others keep
    running. Cancelling the caller still cancels every branch.
    """

    pending = list(awaitables)
    if not pending:
        return []

    outcomes = await asyncio.gather(*pending, return_exceptions=True)

    settled: list[Settled[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            settled.append(Settled(error=outcome))
        else:
            settled.append(Settled(value=outcome))
    return settled


__all__ = ["Settled", "settle_all"]
