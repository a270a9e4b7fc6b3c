from __future__ import annotations

from typing import Iterable, List, Optional, Set

from .pieces import Piece, standard_inventory
from .rules import Difficulty, max_hints_for


class GameState:
    """Mutable session data for one puzzle.

    ``placed_pieces`` is the source of truth for what is on the board; a
    ``GameGrid`` built over the same list indexes into it. The list object is
    never rebound so grids sharing it stay in sync.
    """

    def __init__(self) -> None:
        self.placed_pieces: List[Piece] = []
        self.available_pieces: List[Piece] = []
        self.hints_used = 0
        self.moves_count = 0
        self.current_difficulty = Difficulty.MEDIUM
        self.max_hints = max_hints_for(Difficulty.MEDIUM)
        self.elapsed_time = 0.0
        self.is_game_completed = False
        # Piece count that counts as full coverage; None until a solution is known.
        self.target_pieces: Optional[int] = None
        self._initialize_available_pieces()

    def _initialize_available_pieces(self) -> None:
        self.available_pieces.clear()
        self.available_pieces.extend(standard_inventory())

    @property
    def remaining_pieces_count(self) -> int:
        placed = set(self.placed_pieces)
        return sum(1 for p in self.available_pieces if p not in placed)

    @property
    def used_sums(self) -> Set[int]:
        return {p.sum for p in self.placed_pieces}

    def used_sums_except(self, index: int) -> Set[int]:
        return {p.sum for i, p in enumerate(self.placed_pieces) if i != index}

    def reset(self) -> None:
        self.placed_pieces.clear()
        self.hints_used = 0
        self.moves_count = 0
        self.elapsed_time = 0.0
        self.is_game_completed = False
        self.max_hints = max_hints_for(Difficulty.MEDIUM)
        self.target_pieces = None
        self._initialize_available_pieces()

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self.current_difficulty = Difficulty(difficulty)
        self.max_hints = max_hints_for(self.current_difficulty)
        self.hints_used = 0

    def increment_hints_used(self) -> None:
        self.hints_used += 1

    def increment_moves_count(self) -> None:
        self.moves_count += 1

    def add_placed_piece(self, piece: Piece) -> int:
        """Append ``piece`` and return its index in the placed list."""
        self.placed_pieces.append(piece)
        return len(self.placed_pieces) - 1

    def replace_placed_piece(self, index: int, piece: Piece) -> None:
        self.placed_pieces[index] = piece

    def remove_placed_piece(self, index: int) -> Piece:
        return self.placed_pieces.pop(index)

    def set_game_completed(self, completed: bool) -> None:
        self.is_game_completed = bool(completed)

    def update_elapsed_time(self, seconds: float) -> None:
        self.elapsed_time = float(seconds)

    def clear_pieces(self) -> None:
        self._initialize_available_pieces()

    def add_available_pieces(self, pieces: Iterable[Piece]) -> None:
        for piece in pieces:
            if piece not in self.available_pieces:
                self.available_pieces.append(piece.unplaced())
