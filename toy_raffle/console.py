"""Interactive console for running toy giveaways."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import math
from pathlib import Path
import random
import sys
from typing import Callable, Optional, TextIO

from .config import ConfigError, RaffleConfig, configure_logging, load_config
from .session import DrawStatus, SessionController
from .storage import StorageError
from .toys import DuplicateToyError, Toy, ToyNotFoundError, validate_name


LOGGER = logging.getLogger(__name__)

MIN_WEIGHT = 0.0
MAX_WEIGHT = 100.0


class _EndOfInput(Exception):
    """Raised when stdin is closed while the console waits for a line."""


def clamp_weight(value: float) -> float:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, value))


class RaffleConsole:
    """Numbered-menu loop over a :class:`SessionController`."""

    def __init__(
        self,
        controller: SessionController,
        *,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        clamp_weights: bool = False,
        history_loaded: bool = False,
    ) -> None:
        self.controller = controller
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._clamp_weights = clamp_weights
        self._history_loaded = history_loaded
        self._commands: dict[str, Callable[[], Optional[int]]] = {
            "1": self.add_toy,
            "2": self.update_weight,
            "3": self.draw,
            "4": self.show_winners,
            "5": self.exit,
        }

    # ------------------------------------------------------------------
    # I/O helpers
    # ------------------------------------------------------------------
    def _say(self, message: str = "") -> None:
        print(message, file=self._stdout)

    def _ask(self, prompt: str = "") -> str:
        if prompt:
            self._say(prompt)
        line = self._stdin.readline()
        if not line:
            raise _EndOfInput
        return line.rstrip("\r\n")

    def _ask_int(self, prompt: str) -> int:
        raw = self._ask(prompt).strip()
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{raw!r} is not a whole number.") from None

    def _ask_float(self, prompt: str) -> float:
        raw = self._ask(prompt).strip()
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(f"{raw!r} is not a number.") from None
        if not math.isfinite(value):
            raise ValueError(f"{raw!r} is not a finite number.")
        if self._clamp_weights:
            value = clamp_weight(value)
        return value

    def _menu(self) -> None:
        self._say("Choose an action:")
        self._say("1. Add a toy")
        self._say("2. Update a toy's weight")
        self._say("3. Draw a toy")
        if self._history_loaded:
            self._say("4. Show won toys (including earlier sessions)")
        else:
            self._say("4. Show toys won this session")
        self._say("5. Exit")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def add_toy(self) -> None:
        toy_id = self._ask_int("Enter the toy ID:")
        name = validate_name(self._ask("Enter the toy name:"))
        quantity = self._ask_int("Enter the quantity:")
        if quantity <= 0:
            raise ValueError("Quantity must be a positive whole number.")
        weight = self._ask_float("Enter the toy weight (% of the total):")
        self.controller.add_toy(Toy(id=toy_id, name=name, quantity=quantity, weight=weight))
        self._say(f"Toy {name!r} added.")

    def update_weight(self) -> None:
        toy_id = self._ask_int("Enter the ID of the toy to update:")
        weight = self._ask_float("Enter the new weight:")
        self.controller.update_weight(toy_id, weight)
        self._say(f"Weight of toy {toy_id} updated.")

    def draw(self) -> Optional[int]:
        try:
            outcome = self.controller.draw()
        except StorageError as exc:
            if not self.controller.exhausted:
                raise
            LOGGER.error("%s", exc)
            self._say(f"File error: {exc}")
            self._say("The giveaway is over. All toys have been given away.")
            return 0

        if outcome.status is DrawStatus.EXHAUSTED:
            self._say("The giveaway is over. All toys have been given away.")
            return 0
        if outcome.status is DrawStatus.NO_ELIGIBLE_TOYS or outcome.award is None:
            self._say("No toys to draw.")
            return None
        self._say(f"Congratulations! You won: {outcome.award.name}")
        return None

    def show_winners(self) -> None:
        self._say("Won toys:")
        for record in self.controller.winners():
            self._say(str(record))

    def exit(self) -> int:
        self._say("Goodbye.")
        return 0

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def run(self) -> int:
        """Serve menu commands until the user exits or the toys run out."""

        if self.controller.last_session_time:
            self._say(f"Last session: {self.controller.last_session_time}")

        while True:
            self._menu()
            try:
                choice = self._ask().strip()
            except _EndOfInput:
                return 0

            command = self._commands.get(choice)
            if command is None:
                continue

            try:
                exit_code = command()
            except _EndOfInput:
                return 0
            except StorageError as exc:
                LOGGER.error("%s", exc)
                self._say(f"File error: {exc}")
            except (DuplicateToyError, ToyNotFoundError) as exc:
                self._say(str(exc))
            except ValueError as exc:
                self._say(f"Invalid input: {exc}")
            else:
                if exit_code is not None:
                    return exit_code


def build_controller(config: RaffleConfig) -> SessionController:
    rng = random.Random(config.seed)
    return SessionController.open(config.files, rng=rng, load_history=config.load_history)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the toy giveaway console.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./config.yaml when present).",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the state files (overrides the config file).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the random generator for reproducible draws.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log diagnostics at INFO level.",
    )

    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        raise SystemExit(f"[raffle] {exc}") from exc

    if args.data_dir is not None:
        config = replace(config, files=replace(config.files, directory=args.data_dir.expanduser()))
    if args.seed is not None:
        config = replace(config, seed=args.seed)
    if args.verbose:
        config = replace(config, log_level="INFO")
    configure_logging(config)

    try:
        controller = build_controller(config)
    except StorageError as exc:
        print(f"[raffle] Unable to start: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    console = RaffleConsole(
        controller,
        clamp_weights=config.clamp_weights,
        history_loaded=config.load_history,
    )
    raise SystemExit(console.run())


if __name__ == "__main__":
    main()
