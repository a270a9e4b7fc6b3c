import io
import struct

import numpy as np
import pytest

from domino_puzzle.game.storage import (
    GridSizeMismatchError,
    SaveRecord,
    read_leaderboard,
    read_save,
    read_string,
    write_leaderboard,
    write_save,
    write_string,
)


def _record():
    values = np.arange(81, dtype=np.int32).reshape(9, 9) % 12
    return SaveRecord(
        difficulty=2,
        hints_used=1,
        moves_count=7,
        elapsed_time=33.5,
        values=values,
        pieces=[(1, 2, 0, 0, 0), (5, 6, 4, 4, 1)],
    )


def test_save_record_round_trip():
    buf = io.BytesIO()
    write_save(buf, _record())
    buf.seek(0)
    loaded = read_save(buf)
    original = _record()
    assert loaded.difficulty == 2
    assert (loaded.hints_used, loaded.moves_count, loaded.elapsed_time) == (1, 7, 33.5)
    assert np.array_equal(loaded.values, original.values)
    assert loaded.pieces == original.pieces


def test_save_record_is_little_endian():
    buf = io.BytesIO()
    write_save(buf, _record())
    data = buf.getvalue()
    assert data[:4] == b"\x09\x00\x00\x00"
    assert struct.unpack_from("<d", data, 16)[0] == 33.5
    assert struct.unpack_from("<i", data, 24 + 4)[0] == 1  # values[0, 1]
    assert struct.unpack_from("<i", data, 24 + 324)[0] == 2  # piece count


def test_mismatched_grid_size():
    buf = io.BytesIO(struct.pack("<i", 10) + b"\x00" * 20)
    with pytest.raises(GridSizeMismatchError):
        read_save(buf)


def test_truncated_save():
    buf = io.BytesIO()
    write_save(buf, _record())
    with pytest.raises(ValueError):
        read_save(io.BytesIO(buf.getvalue()[:-3]))


def test_string_length_prefix():
    buf = io.BytesIO()
    write_string(buf, "a" * 200)
    data = buf.getvalue()
    assert data[:2] == b"\xc8\x01"
    assert len(data) == 202
    buf.seek(0)
    assert read_string(buf) == "a" * 200


def test_short_string_prefix_and_utf8():
    buf = io.BytesIO()
    write_string(buf, "Zoë")
    assert buf.getvalue() == b"\x04Zo\xc3\xab"


def test_leaderboard_round_trip():
    entries = [("Ann", 0, 12.5, 20, 1, 1_700_000_000_000_000), ("Bo", 2, 99.0, 41, 3, 0)]
    buf = io.BytesIO()
    write_leaderboard(buf, entries)
    buf.seek(0)
    assert read_leaderboard(buf) == entries
