from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .pieces import Orientation, Piece, Position

GRID_SIZE = 9
EMPTY = -1


class BoardConsistencyError(RuntimeError):
    """Two placed pieces claim the same cell; the placement invariants were broken."""


class GameGrid:
    """9x9 board: cell values, piece occupancy and placement rules.

    ``values`` holds 0 for an empty cell, the clue for an uncovered clue cell
    and the covering piece's sum for a covered cell. ``occupancy`` holds the
    index of the covering piece in ``pieces`` (the owner's placed list) or -1.
    """

    def __init__(self, size: int = GRID_SIZE, pieces: Optional[List[Piece]] = None) -> None:
        if size != GRID_SIZE:
            raise ValueError(f"Grid size must be {GRID_SIZE}x{GRID_SIZE}.")
        self.size = int(size)
        self.pieces: List[Piece] = pieces if pieces is not None else []
        self.values = np.zeros((self.size, self.size), dtype=np.int32)
        self.occupancy = np.full((self.size, self.size), EMPTY, dtype=np.int32)
        self._constraint_cache: Dict[Tuple[int, int], int] = {}

    def clear(self) -> None:
        self.values.fill(0)
        self.occupancy.fill(EMPTY)
        self._constraint_cache.clear()

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def value_at(self, position: Position) -> int:
        return int(self.values[position.row, position.col])

    def set_value(self, row: int, col: int, value: int) -> None:
        self.values[row, col] = value

    def occupant_at(self, position: Position) -> int:
        if not position.is_valid_for_grid(self.size):
            return EMPTY
        return int(self.occupancy[position.row, position.col])

    def is_covered(self, row: int, col: int) -> bool:
        return self.occupancy[row, col] != EMPTY

    # ---------- placement rules ----------

    def fits(self, position: Position, orientation: Orientation) -> bool:
        """Bounds, overlap and no-touch rules only (no clue, sum or digit checks)."""
        second = position.second_cell(orientation)
        if not position.is_valid_for_grid(self.size) or not second.is_valid_for_grid(self.size):
            return False
        for cell in (position, second):
            if self.occupancy[cell.row, cell.col] != EMPTY:
                return False
        return not self.would_touch_other_pieces(position, orientation)

    def would_touch_other_pieces(self, position: Position, orientation: Orientation) -> bool:
        second = position.second_cell(orientation)
        if not position.is_valid_for_grid(self.size) or not second.is_valid_for_grid(self.size):
            return True
        r0 = max(position.row - 1, 0)
        c0 = max(position.col - 1, 0)
        r1 = min(second.row + 2, self.size)
        c1 = min(second.col + 2, self.size)
        return bool(np.any(self.occupancy[r0:r1, c0:c1] != EMPTY))

    def _anchored_in_row(self, row: int, ignore_index: Optional[int] = None) -> List[Piece]:
        found: List[Piece] = []
        for col in range(self.size):
            idx = int(self.occupancy[row, col])
            if idx == EMPTY or idx == ignore_index or idx >= len(self.pieces):
                continue
            piece = self.pieces[idx]
            if piece.position == Position(row, col):
                found.append(piece)
        return found

    def _anchored_in_col(self, col: int, ignore_index: Optional[int] = None) -> List[Piece]:
        found: List[Piece] = []
        for row in range(self.size):
            idx = int(self.occupancy[row, col])
            if idx == EMPTY or idx == ignore_index or idx >= len(self.pieces):
                continue
            piece = self.pieces[idx]
            if piece.position == Position(row, col):
                found.append(piece)
        return found

    @staticmethod
    def _digits_unique(pieces: Iterable[Piece], candidate: Optional[Piece] = None) -> bool:
        digits = set()
        chain = list(pieces) + ([candidate] if candidate is not None else [])
        for piece in chain:
            for v in piece.values:
                if v in digits:
                    return False
                digits.add(v)
        return True

    def keeps_lines_unique(
        self,
        piece: Piece,
        position: Position,
        orientation: Orientation,
        ignore_index: Optional[int] = None,
        both_ways: bool = False,
    ) -> bool:
        """Row/column digit rule for a candidate covering ``position`` and its second cell.

        Pieces contribute both face values to the row and the column of their
        anchor cell. The candidate's values must be new to every row and column
        it would occupy, and those lines must already be duplicate-free.

        With ``both_ways`` the candidate's own anchor is also checked against the
        lines every placed piece occupies, so the resulting layout passes the
        one-way check whatever order its pieces are later placed in.
        """
        second = position.second_cell(orientation)
        if not position.is_valid_for_grid(self.size) or not second.is_valid_for_grid(self.size):
            return False
        if self._line_violation(piece, position, orientation, ignore_index) is not None:
            return False
        return not (both_ways and self._crosses_shared_digit(piece, position, ignore_index))

    def _crosses_shared_digit(self, piece: Piece, anchor: Position, ignore_index: Optional[int] = None) -> bool:
        digits = set(piece.values)
        for idx, other in enumerate(self.pieces):
            if idx == ignore_index or not other.is_placed or not digits.intersection(other.values):
                continue
            cells = other.occupied_positions()
            if anchor.row in {c.row for c in cells} or anchor.col in {c.col for c in cells}:
                return True
        return False

    def _line_violation(
        self,
        piece: Piece,
        position: Position,
        orientation: Orientation,
        ignore_index: Optional[int] = None,
    ) -> Optional[str]:
        second = position.second_cell(orientation)
        for row in sorted({position.row, second.row}):
            if not self._digits_unique(self._anchored_in_row(row, ignore_index), piece):
                return f"Duplicate value in row {row}."
        for col in sorted({position.col, second.col}):
            if not self._digits_unique(self._anchored_in_col(col, ignore_index), piece):
                return f"Duplicate value in column {col}."
        return None

    def placement_violation(
        self,
        piece: Piece,
        position: Position,
        orientation: Orientation,
        used_sums: Iterable[int] = (),
    ) -> Optional[str]:
        """Return why ``piece`` cannot go at ``position``, or None when it can."""
        if not position.is_valid_for_grid(self.size):
            return "Position out of bounds."
        second = position.second_cell(orientation)
        if not second.is_valid_for_grid(self.size):
            return "Second position out of bounds."
        for cell in (position, second):
            if self.values[cell.row, cell.col] > 0 or self.occupancy[cell.row, cell.col] != EMPTY:
                return f"Cell ({cell.row}, {cell.col}) is not empty."
        if piece.sum in set(used_sums):
            return f"Sum {piece.sum} is already used on the board."
        line_error = self._line_violation(piece, position, orientation)
        if line_error is not None:
            return line_error
        if self.would_touch_other_pieces(position, orientation):
            return "Piece would be adjacent to another piece."
        return None

    def can_place(
        self,
        piece: Piece,
        position: Position,
        orientation: Orientation,
        used_sums: Iterable[int] = (),
    ) -> bool:
        return self.placement_violation(piece, position, orientation, used_sums) is None

    # ---------- mutation ----------

    def place(self, piece: Piece, position: Position, orientation: Orientation, index: int) -> None:
        """Write ``piece`` at ``position``. Callers validate first."""
        second = position.second_cell(orientation)
        if not position.is_valid_for_grid(self.size) or not second.is_valid_for_grid(self.size):
            raise ValueError(f"Piece {piece} does not fit at ({position.row}, {position.col}).")
        for cell in (position, second):
            self.occupancy[cell.row, cell.col] = index
            self.values[cell.row, cell.col] = piece.sum
        self._constraint_cache.clear()

    def remove(self, position: Position, piece: Piece) -> bool:
        if self.occupant_at(position) == EMPTY:
            return False
        for cell in piece.occupied_positions():
            if not cell.is_valid_for_grid(self.size):
                continue
            self.occupancy[cell.row, cell.col] = EMPTY
            self.values[cell.row, cell.col] = 0
        self._constraint_cache.clear()
        return True

    def rebuild_occupancy_index(self, pieces: Optional[List[Piece]] = None) -> None:
        """Recompute ``occupancy`` from the positions in the placed list."""
        if pieces is not None:
            self.pieces = pieces
        rebuilt = np.full((self.size, self.size), EMPTY, dtype=np.int32)
        for idx, piece in enumerate(self.pieces):
            for cell in piece.occupied_positions():
                if not cell.is_valid_for_grid(self.size):
                    continue
                if rebuilt[cell.row, cell.col] != EMPTY:
                    raise BoardConsistencyError(
                        f"Pieces {int(rebuilt[cell.row, cell.col])} and {idx} both claim cell ({cell.row}, {cell.col})"
                    )
                rebuilt[cell.row, cell.col] = idx
        self.occupancy[:, :] = rebuilt
        self._constraint_cache.clear()

    # ---------- constraint sums ----------

    def constraint_value_at(self, row: int, col: int) -> int:
        """Sum of the distinct pieces covering the 8 neighbours of (row, col)."""
        if not self.is_inside(row, col):
            return 0
        cached = self._constraint_cache.get((row, col))
        if cached is not None:
            return cached
        seen = set()
        total = 0
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                r, c = row + dr, col + dc
                if not self.is_inside(r, c):
                    continue
                idx = int(self.occupancy[r, c])
                if idx == EMPTY or idx >= len(self.pieces) or idx in seen:
                    continue
                seen.add(idx)
                total += self.pieces[idx].sum
        self._constraint_cache[(row, col)] = total
        return total

    def find_line_duplicate(self) -> Optional[str]:
        """Board-wide row/column digit check, recomputed from occupancy."""
        for row in range(self.size):
            if not self._digits_unique(self._anchored_in_row(row)):
                return f"Duplicate value in row {row}."
        for col in range(self.size):
            if not self._digits_unique(self._anchored_in_col(col)):
                return f"Duplicate value in column {col}."
        return None

    def clue_cells(self) -> List[Position]:
        """Uncovered cells holding a positive value."""
        rows, cols = np.nonzero((self.values > 0) & (self.occupancy == EMPTY))
        return [Position(int(r), int(c)) for r, c in zip(rows, cols)]

    def covered_cell_count(self) -> int:
        return int(np.count_nonzero(self.occupancy != EMPTY))

    def clone_values(self) -> np.ndarray:
        return self.values.copy()

    def clone_occupancy(self) -> np.ndarray:
        return self.occupancy.copy()