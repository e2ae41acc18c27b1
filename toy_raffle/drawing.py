"""Weighted toy selection using a ticket pool."""

from __future__ import annotations

import bisect
from dataclasses import dataclass
import itertools
import logging
import math
import random
from typing import Container, Iterable, Optional

from .toys import Catalog, Toy
from .winners import WinnerRecord, WonToys


TICKETS_PER_FULL_WEIGHT = 10

_DRAW_LOGGER = logging.getLogger("toy_raffle.draws")


def tickets_for(toy: Toy) -> int:
    """Return how many tickets ``toy`` puts into the pool.

    A weight of 100 is worth ten tickets; anything under 10 is worth none.
    Non-finite weights hold no tickets.
    """

    if not math.isfinite(toy.weight):
        return 0
    tickets = math.floor(toy.weight / 100 * TICKETS_PER_FULL_WEIGHT)
    return max(0, int(tickets))


def candidate_toys(toys: Iterable[Toy], won_ids: Container[int]) -> list[Toy]:
    return [toy for toy in toys if toy.id not in won_ids]


@dataclass(frozen=True)
class TicketPool:
    """Candidates holding at least one ticket, in catalog order.

    ``bounds[i]`` is the running ticket total up to and including
    ``holders[i]``, so ticket ``k`` belongs to the first holder whose bound
    exceeds ``k``.
    """

    holders: tuple[Toy, ...]
    bounds: tuple[int, ...]

    @property
    def size(self) -> int:
        return self.bounds[-1] if self.bounds else 0

    def owner(self, ticket: int) -> Toy:
        if not 0 <= ticket < self.size:
            raise IndexError(f"Ticket {ticket} outside pool of {self.size}.")
        return self.holders[bisect.bisect_right(self.bounds, ticket)]


def build_ticket_pool(candidates: Iterable[Toy]) -> TicketPool:
    holders: list[Toy] = []
    counts: list[int] = []
    for toy in candidates:
        tickets = tickets_for(toy)
        if tickets > 0:
            holders.append(toy)
            counts.append(tickets)
    return TicketPool(tuple(holders), tuple(itertools.accumulate(counts)))


def select_prize(
    toys: Iterable[Toy],
    won_ids: Container[int],
    rng: Optional[random.Random] = None,
) -> Optional[Toy]:
    """Pick a toy from the ticket pool, or ``None`` when the pool is empty."""

    pool = build_ticket_pool(candidate_toys(toys, won_ids))
    if not pool.size:
        return None
    rng_obj = rng or random
    return pool.owner(rng_obj.randrange(pool.size))


def log_draw(message: str, *args: object) -> None:
    """Write a line to the draw audit log."""

    _DRAW_LOGGER.info(message, *args)


@dataclass(frozen=True)
class Award:
    """A selected toy and the winner record its mutations will produce."""

    toy_id: int
    name: str
    timestamp: str

    @property
    def record(self) -> WinnerRecord:
        return WinnerRecord(toy_id=self.toy_id, name=self.name, timestamp=self.timestamp)


class DrawingEngine:
    """Select prizes and apply their in-memory effects."""

    def __init__(self, catalog: Catalog, won_toys: WonToys, *, rng: Optional[random.Random] = None) -> None:
        self.catalog = catalog
        self.won_toys = won_toys
        self._rng = rng or random.Random()

    def draw(self, timestamp: str) -> Optional[Award]:
        """Choose a prize without touching any state.

        Returns ``None`` when no candidate holds a ticket.
        """

        prize = select_prize(self.catalog, self.won_toys, self._rng)
        if prize is None:
            log_draw("NO ELIGIBLE TOYS | %d in catalog | %d won", len(self.catalog), len(self.won_toys))
            return None
        log_draw("%d | %s | %s", prize.id, prize.name, timestamp)
        return Award(toy_id=prize.id, name=prize.name, timestamp=timestamp)

    def apply(self, award: Award) -> int:
        """Record ``award`` as won and take it out of stock.

        Returns the quantity left for the toy.
        """

        self.won_toys.record(award.record)
        return self.catalog.decrement_and_maybe_remove(award.toy_id)


__all__ = [
    "Award",
    "DrawingEngine",
    "TICKETS_PER_FULL_WEIGHT",
    "TicketPool",
    "build_ticket_pool",
    "candidate_toys",
    "log_draw",
    "select_prize",
    "tickets_for",
]
