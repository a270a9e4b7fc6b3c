from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from functools import total_ordering
from typing import List, Tuple

MIN_PIP = 0
MAX_PIP = 6


class Orientation(IntEnum):
    HORIZONTAL = 0
    VERTICAL = 1


@dataclass(frozen=True, order=True)
class Position:
    row: int = -1
    col: int = -1

    def is_valid(self) -> bool:
        return self.row >= 0 and self.col >= 0

    def is_valid_for_grid(self, grid_size: int) -> bool:
        return 0 <= self.row < grid_size and 0 <= self.col < grid_size

    def second_cell(self, orientation: Orientation) -> "Position":
        """Cell covered by the other half of a domino anchored here."""
        if orientation == Orientation.HORIZONTAL:
            return Position(self.row, self.col + 1)
        return Position(self.row + 1, self.col)


INVALID_POSITION = Position(-1, -1)


@total_ordering
@dataclass(frozen=True, eq=False)
class Piece:
    """Domino tile with two pip values.

    Identity is the unordered pair: ``Piece(1, 2) == Piece(2, 1)``. Placement
    state travels with the instance but is never mutated; ``placed_at`` and
    ``unplaced`` hand back new instances so owners cannot alias each other.
    """

    value1: int
    value2: int
    position: Position = INVALID_POSITION
    orientation: Orientation = Orientation.HORIZONTAL
    is_placed: bool = False

    def __post_init__(self) -> None:
        for v in (self.value1, self.value2):
            if not MIN_PIP <= v <= MAX_PIP:
                raise ValueError(f"Pip value {v} outside {MIN_PIP}..{MAX_PIP}")

    @property
    def sum(self) -> int:
        return self.value1 + self.value2

    @property
    def values(self) -> Tuple[int, int]:
        return (self.value1, self.value2)

    def canonical(self) -> Tuple[int, int]:
        return (min(self.value1, self.value2), max(self.value1, self.value2))

    def placed_at(self, position: Position, orientation: Orientation) -> "Piece":
        return replace(self, position=position, orientation=Orientation(orientation), is_placed=True)

    def unplaced(self) -> "Piece":
        return Piece(self.value1, self.value2)

    def occupied_positions(self) -> List[Position]:
        if not self.is_placed or not self.position.is_valid():
            return [self.position]
        return [self.position, self.position.second_cell(self.orientation)]

    def can_be_placed_at(self, position: Position, orientation: Orientation, grid_size: int) -> bool:
        return position.is_valid_for_grid(grid_size) and position.second_cell(orientation).is_valid_for_grid(grid_size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Piece):
            return NotImplemented
        return self.canonical() == other.canonical()

    def __lt__(self, other: "Piece") -> bool:
        if not isinstance(other, Piece):
            return NotImplemented
        return self.canonical() < other.canonical()

    def __hash__(self) -> int:
        return hash(self.canonical())

    def __repr__(self) -> str:
        return f"[{self.value1},{self.value2}]"


def standard_inventory() -> List[Piece]:
    """The 21 distinct non-double pairs drawn from 0..6, in canonical order."""
    return [Piece(a, b) for a in range(MIN_PIP, MAX_PIP + 1) for b in range(a + 1, MAX_PIP + 1)]
