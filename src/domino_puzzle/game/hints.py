from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .grid import GameGrid
from .pieces import Piece, Position
from .state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hint:
    piece: Piece
    first: Position
    second: Position
    value: int


class HintSystem:
    """Reveals solution pieces the player has not placed yet, one credit at a time."""

    def __init__(self, generator, state: GameState) -> None:
        if generator is None or state is None:
            raise ValueError("HintSystem needs a generator and a game state")
        self.generator = generator
        self.state = state

    @property
    def can_provide_hint(self) -> bool:
        return self.state.hints_used < self.state.max_hints and bool(self.generator.has_solution)

    def get_hint(self) -> Optional[Hint]:
        """Next solution piece (in solution order) not yet on the board, or None."""
        if not self.can_provide_hint:
            return None
        placed = set(self.state.placed_pieces)
        for piece in self.generator.solution_pieces:
            if piece in placed:
                continue
            first = piece.position
            hint = Hint(piece.unplaced(), first, first.second_cell(piece.orientation), piece.sum)
            self.state.increment_hints_used()
            logger.debug("Hint %d/%d: %r at (%d,%d)", self.state.hints_used, self.state.max_hints, piece, first.row, first.col)
            return hint
        return None

    def check_cell(self, position: Position, grid: GameGrid) -> Tuple[bool, str]:
        if not position.is_valid_for_grid(grid.size):
            return False, "Invalid cell position."
        if grid.is_covered(position.row, position.col):
            return True, ""
        clue = grid.value_at(position)
        calculated = grid.constraint_value_at(position.row, position.col)
        if clue > 0 and calculated != clue:
            return False, (
                f"Incorrect sum at cell ({position.row}, {position.col}). Expected {clue}, got {calculated}."
            )
        return True, ""
