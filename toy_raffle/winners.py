"""Won-toy bookkeeping: the permanent won-id set and prize records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


@dataclass(frozen=True)
class WinnerRecord:
    """One prize event as written to the winners log."""

    toy_id: int
    name: str
    timestamp: str

    def __str__(self) -> str:
        return f"ID: {self.toy_id}, Name: {self.name}, Won: {self.timestamp}"


class WonToys:
    """Ids of every toy that has been drawn at least once.

    Ids only ever enter the set. A toy in here is excluded from later
    draws even when it still has stock left.
    """

    def __init__(self, won_ids: Optional[Iterable[int]] = None) -> None:
        self._ids: set[int] = set(won_ids or ())
        self.session_winners: list[WinnerRecord] = []

    def __contains__(self, toy_id: object) -> bool:
        return toy_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._ids)

    def record(self, winner: WinnerRecord) -> None:
        """Mark ``winner.toy_id`` as won and remember the prize for this session."""

        self._ids.add(winner.toy_id)
        self.session_winners.append(winner)
