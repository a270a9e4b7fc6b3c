from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .grid import GRID_SIZE, GameGrid
from .pieces import Orientation, Piece, Position, standard_inventory
from .rules import Difficulty, hidden_clue_count, initial_piece_count
from .state import GameState

logger = logging.getLogger(__name__)

Placement = Tuple[Position, Orientation]


@dataclass
class GeneratorConfig:
    grid_size: int = GRID_SIZE
    max_attempts: int = 100
    max_search_steps: int = 5000  # candidate placements tried per attempt
    solution_pieces: int = 8
    fallback_ratio: int = 3
    random_seed: Optional[int] = None


class PuzzleGenerator:
    """Builds a solution layout, its clue grid and the starting subset of pieces."""

    def __init__(self, config: Optional[GeneratorConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or GeneratorConfig()
        if self.config.grid_size != GRID_SIZE:
            raise ValueError(f"Grid size must be {GRID_SIZE}x{GRID_SIZE}.")
        self.size = self.config.grid_size
        self.rng = rng or random.Random(self.config.random_seed)
        self.solution_pieces: List[Piece] = []
        self.solution_grid = GameGrid(self.size, self.solution_pieces)
        self.initial_pieces: List[Piece] = []
        self.hidden_clues: List[Position] = []
        self.has_solution = False
        self.used_fallback = False
        self._steps = 0

    def seed(self, seed: Optional[int]) -> None:
        self.rng.seed(seed)

    def clear(self) -> None:
        self._reset_solution()
        self.initial_pieces.clear()
        self.hidden_clues.clear()
        self.has_solution = False
        self.used_fallback = False

    def _reset_solution(self) -> None:
        self.solution_pieces.clear()
        self.solution_grid.clear()

    # ---------- entry point ----------

    def generate_puzzle(self, state: GameState, difficulty: Difficulty) -> bool:
        self.clear()
        inventory = [p.unplaced() for p in (state.available_pieces or standard_inventory())]
        for attempt in range(self.config.max_attempts):
            if self.generate_solution(inventory):
                logger.debug("Solution found on attempt %d after %d steps", attempt + 1, self._steps)
                self._finish(state, difficulty, inventory)
                return True
        logger.warning(
            "Backtracking exhausted %d attempts; falling back to simplified generator",
            self.config.max_attempts,
        )
        return self.generate_simplified_puzzle(state, difficulty, inventory)

    def _finish(self, state: GameState, difficulty: Difficulty, inventory: Sequence[Piece]) -> None:
        self.has_solution = True
        self._generate_initial_pieces(state, difficulty, inventory)
        self._generate_clue_grid()
        self._apply_difficulty(difficulty)

    # ---------- backtracking search ----------

    def generate_solution(self, inventory: Sequence[Piece]) -> bool:
        self._reset_solution()
        shuffled = list(inventory)
        self.rng.shuffle(shuffled)
        pieces = self._distinct_sum_subset(shuffled)
        self._steps = 0
        if self._backtrack(0, pieces):
            return True
        self._reset_solution()
        return False

    def _distinct_sum_subset(self, pieces: Sequence[Piece]) -> List[Piece]:
        limit = min(self.config.solution_pieces, (self.size * self.size) // 2)
        chosen: List[Piece] = []
        sums: Set[int] = set()
        for piece in pieces:
            if len(chosen) >= limit:
                break
            if piece.sum in sums:
                continue
            sums.add(piece.sum)
            chosen.append(piece)
        return chosen

    def _candidate_placements(self) -> List[Placement]:
        out: List[Placement] = []
        for row in range(self.size):
            for col in range(self.size):
                pos = Position(row, col)
                for orient in (Orientation.HORIZONTAL, Orientation.VERTICAL):
                    if self.solution_grid.fits(pos, orient):
                        out.append((pos, orient))
        return out

    def _backtrack(self, index: int, pieces: Sequence[Piece]) -> bool:
        if index >= len(pieces) or index * 2 >= self.size * self.size:
            return True
        piece = pieces[index]
        candidates = self._candidate_placements()
        self.rng.shuffle(candidates)
        for pos, orient in candidates:
            if self._steps >= self.config.max_search_steps:
                return False
            self._steps += 1
            placed = self._place_in_solution(piece, pos, orient)
            last = len(self.solution_pieces) - 1
            if self.solution_grid.keeps_lines_unique(placed, pos, orient, ignore_index=last, both_ways=True):
                if self._backtrack(index + 1, pieces):
                    return True
            self._remove_last_from_solution()
        return False

    def _place_in_solution(self, piece: Piece, position: Position, orientation: Orientation) -> Piece:
        placed = piece.unplaced().placed_at(position, orientation)
        self.solution_pieces.append(placed)
        self.solution_grid.place(placed, position, orientation, len(self.solution_pieces) - 1)
        return placed

    def _remove_last_from_solution(self) -> None:
        placed = self.solution_pieces[-1]
        self.solution_grid.remove(placed.position, placed)
        self.solution_pieces.pop()

    # ---------- degraded fallback ----------

    def generate_simplified_puzzle(
        self,
        state: GameState,
        difficulty: Difficulty,
        inventory: Optional[Sequence[Piece]] = None,
    ) -> bool:
        """Greedy sweep: horizontals along even rows, then verticals down even columns.

        Accepts a partial layout once a third of the inventory is down. This is
        a weak guarantee kept for termination, not a full solution.
        """
        self.clear()
        pool = [p.unplaced() for p in (inventory or state.available_pieces or standard_inventory())]
        self.rng.shuffle(pool)

        for row in range(0, self.size, 2):
            for col in range(0, self.size - 1, 2):
                self._place_first_fitting(pool, Position(row, col), Orientation.HORIZONTAL)
        for col in range(0, self.size, 2):
            for row in range(0, self.size - 1, 2):
                self._place_first_fitting(pool, Position(row, col), Orientation.VERTICAL)

        placed = len(self.solution_pieces)
        if placed >= len(pool) // self.config.fallback_ratio:
            self.used_fallback = True
            logger.warning("Simplified generator placed %d of %d pieces", placed, len(pool))
            self._finish(state, difficulty, pool)
            return True

        logger.error("Simplified generator placed only %d of %d pieces", placed, len(pool))
        self._reset_solution()
        return False

    def _place_first_fitting(self, pool: Sequence[Piece], position: Position, orientation: Orientation) -> bool:
        if len(self.solution_pieces) >= len(pool) or not self.solution_grid.fits(position, orientation):
            return False
        used = {p.sum for p in self.solution_pieces}
        for piece in pool:
            if piece in self.solution_pieces or piece.sum in used:
                continue
            if self.solution_grid.keeps_lines_unique(piece, position, orientation, both_ways=True):
                self._place_in_solution(piece, position, orientation)
                logger.debug("Simplified: placed %r at (%d,%d) %s", piece, position.row, position.col, orientation.name)
                return True
        return False

    # ---------- starting layout ----------

    def _initial_count(self, difficulty: Difficulty) -> int:
        full_board = (self.size * self.size) // 2
        scaled = round(initial_piece_count(difficulty, self.size) * len(self.solution_pieces) / full_board)
        return max(1, min(scaled, len(self.solution_pieces) - 1))

    def _generate_initial_pieces(self, state: GameState, difficulty: Difficulty, inventory: Sequence[Piece]) -> None:
        self.initial_pieces.clear()
        target = self._initial_count(difficulty)
        anchors: Dict[Placement, Piece] = {(p.position, p.orientation): p for p in self.solution_pieces}
        claimed_cells: Set[Position] = set()

        for row in range(self.size):
            for col in range(self.size):
                if len(self.initial_pieces) >= target:
                    break
                pos = Position(row, col)
                if pos in claimed_cells:
                    continue
                orientations = [Orientation.HORIZONTAL, Orientation.VERTICAL]
                self.rng.shuffle(orientations)
                for orient in orientations:
                    if not pos.second_cell(orient).is_valid_for_grid(self.size):
                        continue
                    piece = anchors.get((pos, orient))
                    if piece is None or piece in self.initial_pieces:
                        continue
                    claimed = piece.unplaced().placed_at(pos, orient)
                    self.initial_pieces.append(claimed)
                    claimed_cells.update(claimed.occupied_positions())
                    logger.debug("Initial piece %r at (%d,%d) %s", claimed, row, col, orient.name)
                    break

        remaining_cells = self.size * self.size - 2 * len(self.initial_pieces)
        needed = remaining_cells // 2
        additional = [p.unplaced() for p in inventory if p not in self.initial_pieces][:needed]
        state.clear_pieces()
        state.add_available_pieces(additional)
        state.add_available_pieces(self.initial_pieces)

    # ---------- clues ----------

    def _generate_clue_grid(self) -> None:
        grid = self.solution_grid
        for row in range(self.size):
            for col in range(self.size):
                if not grid.is_covered(row, col):
                    grid.set_value(row, col, grid.constraint_value_at(row, col))

    def _apply_difficulty(self, difficulty: Difficulty) -> None:
        clues = self.solution_grid.clue_cells()
        to_hide = min(hidden_clue_count(difficulty, self.size), len(clues))
        self.rng.shuffle(clues)
        self.hidden_clues = sorted(clues[:to_hide])
        for pos in self.hidden_clues:
            self.solution_grid.set_value(pos.row, pos.col, 0)

    def visible_clues(self) -> List[Tuple[Position, int]]:
        return [(pos, self.solution_grid.value_at(pos)) for pos in self.solution_grid.clue_cells()]
