"""Line-oriented persistence for the toy catalog and draw history."""

from __future__ import annotations

from dataclasses import dataclass
import datetime as _dt
import logging
import math
from pathlib import Path
from typing import Iterable, Optional

from .toys import Toy
from .winners import WinnerRecord


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FIELD_SEPARATOR = ", "

LOGGER = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a state file cannot be read or written."""

    def __init__(self, path: Path, operation: str, reason: object) -> None:
        super().__init__(f"Unable to {operation} {path}: {reason}")
        self.path = path
        self.operation = operation


class FormatError(ValueError):
    """Raised when a persisted line cannot be parsed."""

    def __init__(self, path: Path, line_number: int, line: str, reason: str) -> None:
        super().__init__(f"{path}:{line_number}: {reason}: {line!r}")
        self.path = path
        self.line_number = line_number
        self.line = line


@dataclass(frozen=True)
class StateFiles:
    """Locations of the four state files inside one data directory."""

    directory: Path = Path(".")
    available_toys: str = "available_toys.txt"
    won_toy_ids: str = "won_toy_ids.txt"
    won_toys: str = "won_toys.txt"
    last_session_time: str = "last_session_time.txt"

    @property
    def catalog_path(self) -> Path:
        return self.directory / self.available_toys

    @property
    def won_ids_path(self) -> Path:
        return self.directory / self.won_toy_ids

    @property
    def winners_path(self) -> Path:
        return self.directory / self.won_toys

    @property
    def session_time_path(self) -> Path:
        return self.directory / self.last_session_time


def format_timestamp(moment: Optional[_dt.datetime] = None) -> str:
    """Return ``moment`` (default: now, local time) as ``YYYY-MM-DD HH:MM:SS``."""

    return (moment or _dt.datetime.now()).strftime(TIMESTAMP_FORMAT)


def _read_lines(path: Path) -> Optional[list[str]]:
    """Return the lines of ``path`` or ``None`` when the file does not exist."""

    try:
        with path.open("r", encoding="utf-8") as handle:
            return handle.read().splitlines()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(path, "read", exc) from exc


def _write_lines(path: Path, lines: Iterable[str], *, append: bool = False) -> None:
    mode = "a" if append else "w"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open(mode, encoding="utf-8", newline="\n") as handle:
            for line in lines:
                handle.write(line + "\n")
    except OSError as exc:
        raise StorageError(path, "append to" if append else "write", exc) from exc


# ----------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------
def format_toy_line(toy: Toy) -> str:
    return FIELD_SEPARATOR.join(
        (str(toy.id), toy.name, str(toy.quantity), repr(float(toy.weight)))
    )


def parse_toy_line(path: Path, line_number: int, line: str) -> Toy:
    """Parse one ``id, name, quantity, weight`` line."""

    parts = line.split(FIELD_SEPARATOR)
    if len(parts) != 4:
        raise FormatError(path, line_number, line, f"expected 4 fields, found {len(parts)}")
    raw_id, name, raw_quantity, raw_weight = parts
    try:
        toy_id = int(raw_id)
        quantity = int(raw_quantity)
        weight = float(raw_weight)
    except ValueError as exc:
        raise FormatError(path, line_number, line, "numeric field expected") from exc
    if not math.isfinite(weight):
        raise FormatError(path, line_number, line, "weight must be finite")
    if quantity < 0:
        raise FormatError(path, line_number, line, "quantity must not be negative")
    return Toy(id=toy_id, name=name, quantity=quantity, weight=weight)


def load_catalog(files: StateFiles) -> list[Toy]:
    """Load the available toys in file order.

    A missing file yields an empty list. Malformed lines, duplicate ids and
    exhausted entries are logged and skipped.
    """

    path = files.catalog_path
    lines = _read_lines(path)
    if lines is None:
        LOGGER.info("No catalog at %s; starting empty.", path)
        return []

    toys: list[Toy] = []
    seen: set[int] = set()
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            toy = parse_toy_line(path, number, line)
        except FormatError as exc:
            LOGGER.warning("Skipping malformed catalog line: %s", exc)
            continue
        if toy.id in seen:
            LOGGER.warning("Skipping duplicate toy id %d at %s:%d", toy.id, path, number)
            continue
        if toy.quantity == 0:
            LOGGER.warning("Skipping exhausted toy id %d at %s:%d", toy.id, path, number)
            continue
        seen.add(toy.id)
        toys.append(toy)
    return toys


def save_catalog(files: StateFiles, toys: Iterable[Toy]) -> None:
    """Rewrite the catalog file with ``toys``."""

    _write_lines(files.catalog_path, [format_toy_line(toy) for toy in toys])


# ----------------------------------------------------------------------
# Won ids
# ----------------------------------------------------------------------
def load_won_ids(files: StateFiles) -> set[int]:
    path = files.won_ids_path
    lines = _read_lines(path)
    if lines is None:
        return set()

    won: set[int] = set()
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            won.add(int(line.strip()))
        except ValueError:
            LOGGER.warning(
                "Skipping malformed won id: %s",
                FormatError(path, number, line, "integer expected"),
            )
    return won


def save_won_ids(files: StateFiles, won_ids: Iterable[int]) -> None:
    _write_lines(files.won_ids_path, [str(toy_id) for toy_id in sorted(won_ids)])


# ----------------------------------------------------------------------
# Winners log
# ----------------------------------------------------------------------
def append_winner(files: StateFiles, record: WinnerRecord) -> None:
    """Append a single ``id, name, timestamp`` line to the winners log."""

    line = FIELD_SEPARATOR.join((str(record.toy_id), record.name, record.timestamp))
    _write_lines(files.winners_path, [line], append=True)


def load_winners(files: StateFiles) -> list[WinnerRecord]:
    """Read back the winners log, oldest first."""

    path = files.winners_path
    lines = _read_lines(path)
    if lines is None:
        return []

    records: list[WinnerRecord] = []
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        parts = line.split(FIELD_SEPARATOR)
        try:
            if len(parts) != 3:
                raise FormatError(path, number, line, f"expected 3 fields, found {len(parts)}")
            try:
                toy_id = int(parts[0])
            except ValueError as exc:
                raise FormatError(path, number, line, "integer id expected") from exc
        except FormatError as exc:
            LOGGER.warning("Skipping malformed winners log line: %s", exc)
            continue
        records.append(WinnerRecord(toy_id=toy_id, name=parts[1], timestamp=parts[2]))
    return records


# ----------------------------------------------------------------------
# Last session time
# ----------------------------------------------------------------------
def load_last_session_time(files: StateFiles) -> str:
    lines = _read_lines(files.session_time_path)
    if not lines:
        return ""
    return lines[0].strip()


def save_last_session_time(files: StateFiles, timestamp: str) -> None:
    _write_lines(files.session_time_path, [timestamp])
