"""Toy records and the ordered catalog of toys still up for grabs."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Iterable, Iterator, List, Optional


LOGGER = logging.getLogger(__name__)

CatalogListener = Callable[[List["Toy"]], None]


class DuplicateToyError(ValueError):
    """Raised when adding a toy whose id is already in the catalog."""

    def __init__(self, toy_id: int) -> None:
        super().__init__(f"A toy with ID {toy_id} already exists.")
        self.toy_id = toy_id


class ToyNotFoundError(KeyError):
    """Raised when a toy id is not present in the catalog."""

    def __init__(self, toy_id: int) -> None:
        super().__init__(toy_id)
        self.toy_id = toy_id

    def __str__(self) -> str:
        return f"Toy with ID {self.toy_id} not found."


@dataclass
class Toy:
    """A giveaway toy with its remaining stock and percentage weight."""

    id: int
    name: str
    quantity: int
    weight: float

    def __str__(self) -> str:
        return f"ID: {self.id}, Name: {self.name}, Quantity: {self.quantity}"


def validate_name(name: str) -> str:
    """Return ``name`` stripped, rejecting text the catalog file cannot hold."""

    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Toy name cannot be empty.")
    if "," in cleaned or "\n" in cleaned or "\r" in cleaned:
        raise ValueError("Toy name cannot contain commas or line breaks.")
    return cleaned


class Catalog:
    """Insertion-ordered collection of toys keyed by unique id.

    ``on_change`` receives a snapshot of the toys after ``add`` and
    ``update_weight`` so the caller can persist it. Quantity changes made
    by the drawing engine are not announced; the session controller
    persists them in its own write order.
    """

    def __init__(
        self,
        toys: Optional[Iterable[Toy]] = None,
        *,
        on_change: Optional[CatalogListener] = None,
    ) -> None:
        self._toys: list[Toy] = []
        for toy in toys or ():
            if self.find_by_id(toy.id) is not None:
                raise DuplicateToyError(toy.id)
            self._toys.append(toy)
        self._on_change = on_change

    def __iter__(self) -> Iterator[Toy]:
        return iter(list(self._toys))

    def __len__(self) -> int:
        return len(self._toys)

    def __bool__(self) -> bool:
        return bool(self._toys)

    @property
    def toys(self) -> list[Toy]:
        return list(self._toys)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.toys)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_by_id(self, toy_id: int) -> Optional[Toy]:
        for toy in self._toys:
            if toy.id == toy_id:
                return toy
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, toy: Toy) -> None:
        if toy.quantity <= 0:
            raise ValueError("Quantity must be a positive whole number.")
        if self.find_by_id(toy.id) is not None:
            raise DuplicateToyError(toy.id)
        self._toys.append(toy)
        LOGGER.info("Added toy %d (%s), quantity %d, weight %s", toy.id, toy.name, toy.quantity, toy.weight)
        self._notify()

    def update_weight(self, toy_id: int, new_weight: float) -> Toy:
        toy = self.find_by_id(toy_id)
        if toy is None:
            raise ToyNotFoundError(toy_id)
        toy.weight = new_weight
        LOGGER.info("Updated weight of toy %d to %s", toy_id, new_weight)
        self._notify()
        return toy

    def decrement_and_maybe_remove(self, toy_id: int) -> int:
        """Take one unit of ``toy_id`` out of stock and return what remains.

        The entry is dropped once its quantity reaches zero.
        """

        for index, toy in enumerate(self._toys):
            if toy.id == toy_id:
                toy.quantity = max(0, toy.quantity - 1)
                if toy.quantity == 0:
                    del self._toys[index]
                    LOGGER.info("Toy %d (%s) is out of stock", toy.id, toy.name)
                return toy.quantity
        raise ToyNotFoundError(toy_id)


__all__ = [
    "Catalog",
    "DuplicateToyError",
    "Toy",
    "ToyNotFoundError",
    "validate_name",
]
