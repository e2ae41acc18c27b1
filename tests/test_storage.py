"""Persistence layer tests."""

import datetime as _dt

import pytest

from toy_raffle.storage import (
    FormatError,
    StateFiles,
    StorageError,
    append_winner,
    format_timestamp,
    load_catalog,
    load_last_session_time,
    load_winners,
    load_won_ids,
    parse_toy_line,
    save_catalog,
    save_last_session_time,
    save_won_ids,
)
from toy_raffle.toys import Toy
from toy_raffle.winners import WinnerRecord


def test_missing_files_load_empty(files):
    assert load_catalog(files) == []
    assert load_won_ids(files) == set()
    assert load_winners(files) == []
    assert load_last_session_time(files) == ""


def test_catalog_round_trip_preserves_order(files):
    toys = [
        Toy(7, "Robot", 3, 45.5),
        Toy(2, "Doll", 1, 100.0),
        Toy(5, "Ball", 12, 0.0),
    ]
    save_catalog(files, toys)
    assert load_catalog(files) == toys


def test_catalog_file_format(files):
    save_catalog(files, [Toy(1, "A", 2, 100.0), Toy(2, "Spinning Top", 5, 12.5)])
    text = files.catalog_path.read_text(encoding="utf-8")
    assert text == "1, A, 2, 100.0\n2, Spinning Top, 5, 12.5\n"


def test_catalog_load_skips_malformed_and_duplicate_lines(files, caplog):
    files.catalog_path.write_text(
        "1, A, 2, 100.0\n"
        "not a toy\n"
        "2, B, two, 50.0\n"
        "\n"
        "1, Again, 4, 20.0\n"
        "3, C, 0, 20.0\n"
        "4, D, 1, 30\n",
        encoding="utf-8",
    )
    toys = load_catalog(files)
    assert toys == [Toy(1, "A", 2, 100.0), Toy(4, "D", 1, 30.0)]
    assert "malformed" in caplog.text
    assert "duplicate toy id 1" in caplog.text


def test_catalog_load_skips_non_finite_weights(files, caplog):
    files.catalog_path.write_text(
        "1, A, 1, inf\n"
        "2, B, 1, nan\n"
        "3, C, 1, -Infinity\n"
        "4, D, 2, 40.0\n",
        encoding="utf-8",
    )
    assert load_catalog(files) == [Toy(4, "D", 2, 40.0)]
    assert caplog.text.count("weight must be finite") == 3


def test_parse_toy_line_reports_line_number(tmp_path):
    with pytest.raises(FormatError) as excinfo:
        parse_toy_line(tmp_path / "available_toys.txt", 3, "1, A, x, 10.0")
    assert excinfo.value.line_number == 3
    assert ":3:" in str(excinfo.value)


def test_won_ids_round_trip_and_bad_lines(files):
    save_won_ids(files, {3, 1, 2})
    assert files.won_ids_path.read_text(encoding="utf-8") == "1\n2\n3\n"
    with files.won_ids_path.open("a", encoding="utf-8") as handle:
        handle.write("oops\n 9 \n")
    assert load_won_ids(files) == {1, 2, 3, 9}


def test_winners_log_appends(files):
    append_winner(files, WinnerRecord(1, "A", "2024-03-05 14:07:09"))
    append_winner(files, WinnerRecord(2, "B", "2024-03-05 14:08:00"))
    assert files.winners_path.read_text(encoding="utf-8").splitlines() == [
        "1, A, 2024-03-05 14:07:09",
        "2, B, 2024-03-05 14:08:00",
    ]
    assert load_winners(files) == [
        WinnerRecord(1, "A", "2024-03-05 14:07:09"),
        WinnerRecord(2, "B", "2024-03-05 14:08:00"),
    ]


def test_last_session_time_overwrites(files):
    save_last_session_time(files, "2024-01-01 00:00:00")
    save_last_session_time(files, "2024-03-05 14:07:09")
    assert files.session_time_path.read_text(encoding="utf-8") == "2024-03-05 14:07:09\n"
    assert load_last_session_time(files) == "2024-03-05 14:07:09"


def test_format_timestamp_is_zero_padded():
    assert format_timestamp(_dt.datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02 03:04:05"


def test_unreadable_path_raises_storage_error(tmp_path):
    # A directory where the catalog file should be cannot be opened as a file.
    files = StateFiles(directory=tmp_path)
    files.catalog_path.mkdir()
    with pytest.raises(StorageError) as excinfo:
        load_catalog(files)
    assert excinfo.value.path == files.catalog_path
    with pytest.raises(StorageError):
        save_catalog(files, [Toy(1, "A", 1, 50.0)])
