"""Session state management for the toy raffle."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as _dt
from enum import Enum
import logging
import random
from typing import Callable, Final, Optional

from .drawing import Award, DrawingEngine, log_draw
from .storage import (
    StateFiles,
    StorageError,
    append_winner,
    format_timestamp,
    load_catalog,
    load_last_session_time,
    load_winners,
    load_won_ids,
    save_catalog,
    save_last_session_time,
    save_won_ids,
)
from .toys import Catalog, Toy
from .winners import WinnerRecord, WonToys


LOGGER = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Possible session states."""

    IDLE: Final[str] = "IDLE"
    DRAWING: Final[str] = "DRAWING"
    AWARDING: Final[str] = "AWARDING"
    EXHAUSTED: Final[str] = "EXHAUSTED"


class DrawStatus(str, Enum):
    """How a draw request ended."""

    AWARDED: Final[str] = "AWARDED"
    NO_ELIGIBLE_TOYS: Final[str] = "NO_ELIGIBLE_TOYS"
    EXHAUSTED: Final[str] = "EXHAUSTED"


@dataclass(frozen=True)
class DrawOutcome:
    status: DrawStatus
    award: Optional[Award] = None
    remaining: Optional[int] = None


@dataclass
class SessionController:
    """Drive draws and keep the state files in step with memory."""

    files: StateFiles
    catalog: Catalog
    won_toys: WonToys
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], _dt.datetime] = _dt.datetime.now
    last_session_time: str = ""
    history: list[WinnerRecord] = field(default_factory=list)
    state: SessionState = SessionState.IDLE
    engine: DrawingEngine = field(init=False)

    def __post_init__(self) -> None:
        self.engine = DrawingEngine(self.catalog, self.won_toys, rng=self.rng)

    @classmethod
    def open(
        cls,
        files: StateFiles,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], _dt.datetime] = _dt.datetime.now,
        load_history: bool = False,
    ) -> "SessionController":
        """Load state from ``files`` and return a controller bound to it.

        A catalog that cannot be read is reported and replaced by an empty
        one. Won ids that cannot be read raise ``StorageError``.
        """

        try:
            toys = load_catalog(files)
        except StorageError as exc:
            LOGGER.error("Starting with an empty catalog: %s", exc)
            toys = []

        won_ids = load_won_ids(files)

        try:
            last_session_time = load_last_session_time(files)
        except StorageError as exc:
            LOGGER.warning("Ignoring unreadable last session time: %s", exc)
            last_session_time = ""

        history: list[WinnerRecord] = []
        if load_history:
            try:
                history = load_winners(files)
            except StorageError as exc:
                LOGGER.warning("Ignoring unreadable winners log: %s", exc)

        catalog = Catalog(toys, on_change=lambda snapshot: save_catalog(files, snapshot))
        return cls(
            files=files,
            catalog=catalog,
            won_toys=WonToys(won_ids),
            rng=rng or random.Random(),
            clock=clock,
            last_session_time=last_session_time,
            history=history,
        )

    # ------------------------------------------------------------------
    # Catalog commands
    # ------------------------------------------------------------------
    def add_toy(self, toy: Toy) -> None:
        self.catalog.add(toy)

    def update_weight(self, toy_id: int, new_weight: float) -> Toy:
        return self.catalog.update_weight(toy_id, new_weight)

    def winners(self) -> list[WinnerRecord]:
        """Return prizes to show: earlier history (if loaded) then this session's."""

        return list(self.history) + list(self.won_toys.session_winners)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def transition(self, new_state: SessionState) -> None:
        if self.state is new_state:
            return
        LOGGER.debug("Session %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    @property
    def exhausted(self) -> bool:
        return self.state is SessionState.EXHAUSTED

    def draw(self) -> DrawOutcome:
        """Run one drawing cycle.

        An empty catalog ends the session: the last session time is written
        and ``DrawStatus.EXHAUSTED`` is returned for the caller to exit on.
        """

        if self.exhausted:
            return DrawOutcome(DrawStatus.EXHAUSTED)

        self.transition(SessionState.DRAWING)
        if not self.catalog:
            self.finish()
            return DrawOutcome(DrawStatus.EXHAUSTED)

        timestamp = format_timestamp(self.clock())
        award = self.engine.draw(timestamp)
        if award is None:
            self.transition(SessionState.IDLE)
            return DrawOutcome(DrawStatus.NO_ELIGIBLE_TOYS)

        self.transition(SessionState.AWARDING)
        try:
            remaining = self._award(award)
        finally:
            self.transition(SessionState.IDLE)
        return DrawOutcome(DrawStatus.AWARDED, award=award, remaining=remaining)

    def _award(self, award: Award) -> int:
        # Winners log first, before memory changes: a failed append leaves the
        # session exactly as it was.
        append_winner(self.files, award.record)
        remaining = self.engine.apply(award)
        self.last_session_time = award.timestamp
        save_catalog(self.files, self.catalog.toys)
        save_won_ids(self.files, self.won_toys.ids)
        save_last_session_time(self.files, self.last_session_time)
        return remaining

    def finish(self) -> None:
        """Enter the terminal state and persist the final session time."""

        self.transition(SessionState.EXHAUSTED)
        self.last_session_time = format_timestamp(self.clock())
        log_draw("CATALOG EXHAUSTED | %s", self.last_session_time)
        save_last_session_time(self.files, self.last_session_time)


__all__ = [
    "DrawOutcome",
    "DrawStatus",
    "SessionController",
    "SessionState",
]
