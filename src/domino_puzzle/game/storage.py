"""Binary save-file and leaderboard record codecs.

All integers are little-endian. Strings use a 7-bit varint byte-length
prefix followed by UTF-8 bytes.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, List, Tuple

import numpy as np

from .grid import GRID_SIZE

_HEADER = struct.Struct("<iiiid")  # grid size, difficulty, hints, moves, elapsed
_INT32 = struct.Struct("<i")
_PIECE = struct.Struct("<iiiii")  # value1, value2, row, col, orientation
_ENTRY_TAIL = struct.Struct("<idiiq")  # difficulty, time, moves, hints, timestamp

PieceRecord = Tuple[int, int, int, int, int]


class GridSizeMismatchError(ValueError):
    """Save file was written for a board size other than 9x9."""


@dataclass
class SaveRecord:
    difficulty: int
    hints_used: int
    moves_count: int
    elapsed_time: float
    values: np.ndarray
    pieces: List[PieceRecord] = field(default_factory=list)
    grid_size: int = GRID_SIZE


def _read_exact(fh: BinaryIO, size: int) -> bytes:
    data = fh.read(size)
    if len(data) != size:
        raise ValueError(f"Unexpected end of file (wanted {size} bytes, got {len(data)})")
    return data


def write_save(fh: BinaryIO, record: SaveRecord) -> None:
    values = np.asarray(record.values, dtype="<i4")
    if values.shape != (record.grid_size, record.grid_size):
        raise ValueError(f"Cell matrix has shape {values.shape}, expected {record.grid_size}x{record.grid_size}")
    fh.write(_HEADER.pack(
        record.grid_size,
        int(record.difficulty),
        record.hints_used,
        record.moves_count,
        float(record.elapsed_time),
    ))
    fh.write(values.tobytes(order="C"))
    fh.write(_INT32.pack(len(record.pieces)))
    for piece in record.pieces:
        fh.write(_PIECE.pack(*(int(v) for v in piece)))


def read_save(fh: BinaryIO, expected_size: int = GRID_SIZE) -> SaveRecord:
    (grid_size,) = _INT32.unpack(_read_exact(fh, _INT32.size))
    if grid_size != expected_size:
        raise GridSizeMismatchError(f"Grid size mismatch. Expected {expected_size}x{expected_size} grid.")
    difficulty, hints, moves, elapsed = struct.unpack("<iiid", _read_exact(fh, _HEADER.size - _INT32.size))
    cells = grid_size * grid_size
    values = np.frombuffer(_read_exact(fh, 4 * cells), dtype="<i4").reshape(grid_size, grid_size).astype(np.int32)
    (count,) = _INT32.unpack(_read_exact(fh, _INT32.size))
    if count < 0 or count > cells // 2:
        raise ValueError(f"Corrupt piece count {count}")
    pieces = [_PIECE.unpack(_read_exact(fh, _PIECE.size)) for _ in range(count)]
    return SaveRecord(difficulty, hints, moves, elapsed, values, pieces, grid_size)


# ---------- length-prefixed strings ----------

def write_string(fh: BinaryIO, text: str) -> None:
    data = text.encode("utf-8")
    length = len(data)
    prefix = bytearray()
    while True:
        byte = length & 0x7F
        length >>= 7
        if length:
            prefix.append(byte | 0x80)
        else:
            prefix.append(byte)
            break
    fh.write(bytes(prefix))
    fh.write(data)


def read_string(fh: BinaryIO) -> str:
    length = 0
    shift = 0
    while True:
        (byte,) = _read_exact(fh, 1)
        length |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
        shift += 7
        if shift > 28:
            raise ValueError("String length prefix is too long")
    return _read_exact(fh, length).decode("utf-8")


# ---------- leaderboard ----------

EntryRecord = Tuple[str, int, float, int, int, int]


def write_leaderboard(fh: BinaryIO, entries: List[EntryRecord]) -> None:
    fh.write(_INT32.pack(len(entries)))
    for name, difficulty, time, moves, hints, timestamp in entries:
        write_string(fh, name)
        fh.write(_ENTRY_TAIL.pack(int(difficulty), float(time), int(moves), int(hints), int(timestamp)))


def read_leaderboard(fh: BinaryIO) -> List[EntryRecord]:
    (count,) = _INT32.unpack(_read_exact(fh, _INT32.size))
    if count < 0:
        raise ValueError(f"Corrupt entry count {count}")
    entries: List[EntryRecord] = []
    for _ in range(count):
        name = read_string(fh)
        difficulty, time, moves, hints, timestamp = _ENTRY_TAIL.unpack(_read_exact(fh, _ENTRY_TAIL.size))
        entries.append((name, difficulty, time, moves, hints, timestamp))
    return entries
