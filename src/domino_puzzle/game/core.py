from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .generator import GeneratorConfig, PuzzleGenerator
from .grid import EMPTY, GRID_SIZE, GameGrid
from .hints import Hint, HintSystem
from .leaderboard import Leaderboard
from .pieces import Orientation, Piece, Position
from .rules import Difficulty
from .state import GameState
from .storage import GridSizeMismatchError, SaveRecord, read_save, write_save

logger = logging.getLogger(__name__)

Result = Tuple[bool, str]


@dataclass
class GameConfig:
    grid_size: int = GRID_SIZE
    player_name: str = "Player"
    leaderboard_path: Optional[str] = "leaderboard.bin"
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)


class GameManager:
    """Applies player actions to the board and checks the finished puzzle.

    Every action returns ``(ok, message)``. A rejected action leaves the
    session untouched; ``message`` is empty on a clean success.
    """

    def __init__(self, config: Optional[GameConfig] = None, leaderboard: Optional[Leaderboard] = None) -> None:
        self.config = config or GameConfig()
        if self.config.grid_size != GRID_SIZE:
            raise ValueError(f"Grid size must be {GRID_SIZE}x{GRID_SIZE}.")
        self.state = GameState()
        self.grid = GameGrid(GRID_SIZE, self.state.placed_pieces)
        self.generator = PuzzleGenerator(self.config.generator)
        self.hints = HintSystem(self.generator, self.state)
        self.leaderboard = leaderboard if leaderboard is not None else Leaderboard(self.config.leaderboard_path)

    # ---------- read-only views ----------

    @property
    def grid_size(self) -> int:
        return self.grid.size

    @property
    def values(self) -> np.ndarray:
        return self.grid.clone_values()

    @property
    def placed_pieces(self) -> List[Piece]:
        return list(self.state.placed_pieces)

    @property
    def available_pieces(self) -> List[Piece]:
        return list(self.state.available_pieces)

    @property
    def remaining_pieces_count(self) -> int:
        return self.state.remaining_pieces_count

    @property
    def is_game_completed(self) -> bool:
        return self.state.is_game_completed

    @property
    def hints_used(self) -> int:
        return self.state.hints_used

    @property
    def max_hints(self) -> int:
        return self.state.max_hints

    @property
    def moves_count(self) -> int:
        return self.state.moves_count

    @property
    def current_difficulty(self) -> Difficulty:
        return self.state.current_difficulty

    @property
    def elapsed_time(self) -> float:
        return self.state.elapsed_time

    @property
    def has_solution(self) -> bool:
        return self.generator.has_solution

    @property
    def target_pieces(self) -> int:
        if self.state.target_pieces is not None:
            return self.state.target_pieces
        return self.config.generator.solution_pieces

    # ---------- game lifecycle ----------

    def new_game(self, difficulty: Difficulty = Difficulty.MEDIUM, seed: Optional[int] = None) -> bool:
        difficulty = Difficulty(difficulty)
        if seed is not None:
            self.generator.seed(seed)
        self.state.reset()
        self.grid.clear()
        self.state.set_difficulty(difficulty)

        if not self.generator.generate_puzzle(self.state, difficulty):
            logger.error("Puzzle generation failed for %s", difficulty.name)
            return False

        for position, clue in self.generator.visible_clues():
            self.grid.set_value(position.row, position.col, clue)
        for piece in self.generator.initial_pieces:
            placed = piece.unplaced().placed_at(piece.position, piece.orientation)
            index = self.state.add_placed_piece(placed)
            self.grid.place(placed, placed.position, placed.orientation, index)

        self.state.target_pieces = len(self.generator.solution_pieces)
        self.state.update_elapsed_time(0.0)
        logger.info(
            "New %s game: %d solution pieces, %d pre-placed, %d clues",
            difficulty.name,
            len(self.generator.solution_pieces),
            len(self.generator.initial_pieces),
            len(self.grid.clue_cells()),
        )
        return True

    def reset_game(self) -> bool:
        return self.new_game(self.state.current_difficulty)

    # ---------- placement ----------

    @staticmethod
    def _placement_error(
        state: GameState,
        grid: GameGrid,
        piece: Piece,
        position: Position,
        orientation: Orientation,
    ) -> Optional[str]:
        if not position.is_valid_for_grid(grid.size):
            return "Invalid position for piece placement."
        second = position.second_cell(orientation)
        if not second.is_valid_for_grid(grid.size):
            return "Second position out of bounds."
        for cell in (position, second):
            if grid.is_covered(cell.row, cell.col):
                return f"Cell ({cell.row}, {cell.col}) is already covered."
            if grid.value_at(cell) > 0:
                return "Cannot place domino in a numbered cell."
        violation = grid.placement_violation(piece, position, orientation, state.used_sums)
        if violation is not None:
            return f"Invalid placement: {violation}"
        return None

    @classmethod
    def _try_place(
        cls,
        state: GameState,
        grid: GameGrid,
        piece: Piece,
        position: Position,
        orientation: Orientation,
    ) -> Result:
        orientation = Orientation(orientation)
        error = cls._placement_error(state, grid, piece, position, orientation)
        if error is not None:
            return False, error
        placed = piece.unplaced().placed_at(position, orientation)
        index = state.add_placed_piece(placed)
        grid.place(placed, position, orientation, index)
        return True, ""

    def can_place(self, piece: Piece, position: Position, orientation: Orientation) -> bool:
        return self._placement_error(self.state, self.grid, piece, position, Orientation(orientation)) is None

    def open_slots(self) -> List[Tuple[Position, Orientation]]:
        """Anchors whose two cells are empty, clue-free and touch no piece."""
        out: List[Tuple[Position, Orientation]] = []
        for row in range(self.grid.size):
            for col in range(self.grid.size):
                position = Position(row, col)
                for orient in (Orientation.HORIZONTAL, Orientation.VERTICAL):
                    if not self.grid.fits(position, orient):
                        continue
                    second = position.second_cell(orient)
                    if self.grid.value_at(position) == 0 and self.grid.value_at(second) == 0:
                        out.append((position, orient))
        return out

    def valid_placements(
        self,
        piece: Piece,
        slots: Optional[List[Tuple[Position, Orientation]]] = None,
    ) -> List[Tuple[Position, Orientation]]:
        """Every (anchor, orientation) where ``piece`` could be placed right now."""
        if slots is None:
            slots = self.open_slots()
        return [(pos, orient) for pos, orient in slots if self.can_place(piece, pos, orient)]

    def place_piece(self, piece: Piece, position: Position, orientation: Orientation) -> Result:
        return self._place(piece, position, orientation, record=True)

    def _place(self, piece: Piece, position: Position, orientation: Orientation, record: bool) -> Result:
        ok, message = self._try_place(self.state, self.grid, piece, position, orientation)
        if not ok:
            logger.debug("Rejected %r at (%d,%d): %s", piece, position.row, position.col, message)
            return False, message
        self.state.increment_moves_count()
        return True, self._check_completion(record)

    def remove_piece(self, position: Position) -> Result:
        if not position.is_valid_for_grid(self.grid.size):
            return False, "Invalid position."
        index = self.grid.occupant_at(position)
        if index == EMPTY or index >= len(self.state.placed_pieces):
            return False, "No piece at the specified position."

        piece = self.state.placed_pieces[index]
        if not self.grid.remove(piece.position, piece):
            return False, "Failed to remove piece."
        self.state.remove_placed_piece(index)
        self.state.increment_moves_count()
        self.state.set_game_completed(False)
        self.grid.rebuild_occupancy_index()
        return True, ""

    def move_piece(self, source: Position, to1: Position, to2: Position) -> Result:
        """Move the piece covering ``source`` onto the two cells ``to1``/``to2``.

        A successful move sends the piece to the end of the placed list, so the
        list order is always an order in which the board can be replayed.
        """
        if not source.is_valid_for_grid(self.grid.size):
            return False, "Invalid source position."
        index = self.grid.occupant_at(source)
        if index == EMPTY or index >= len(self.state.placed_pieces):
            return False, "No piece at source position."
        if not to1.is_valid_for_grid(self.grid.size) or not to2.is_valid_for_grid(self.grid.size):
            return False, "Invalid destination position."
        if abs(to1.row - to2.row) + abs(to1.col - to2.col) != 1:
            return False, "Destination cells must be orthogonally adjacent."

        orientation = Orientation.HORIZONTAL if to1.row == to2.row else Orientation.VERTICAL
        anchor = min(to1, to2)
        piece = self.state.placed_pieces[index]

        self.grid.remove(piece.position, piece)
        error = self._destination_error(piece, anchor, orientation, index)
        if error is not None:
            self.grid.place(piece, piece.position, piece.orientation, index)
            return False, f"Invalid destination: {error}"

        self.state.remove_placed_piece(index)
        self.grid.rebuild_occupancy_index()
        moved = piece.unplaced().placed_at(anchor, orientation)
        new_index = self.state.add_placed_piece(moved)
        self.grid.place(moved, anchor, orientation, new_index)
        self.state.increment_moves_count()
        return True, self._check_completion(record=True)

    def _destination_error(self, piece: Piece, anchor: Position, orientation: Orientation, index: int) -> Optional[str]:
        for cell in (anchor, anchor.second_cell(orientation)):
            if self.grid.is_covered(cell.row, cell.col):
                return f"Cell ({cell.row}, {cell.col}) is already covered."
        return self.grid.placement_violation(
            piece.unplaced(), anchor, orientation, self.state.used_sums_except(index)
        )

    # ---------- validation ----------

    def _check_completion(self, record: bool) -> str:
        if len(self.state.placed_pieces) < self.target_pieces:
            return ""
        valid, message = self.is_valid_solution()
        was_completed = self.state.is_game_completed
        self.state.set_game_completed(valid)
        if not valid:
            logger.info("Board full but not solved: %s", message)
            return message
        if not was_completed:
            logger.info("Puzzle solved in %d moves", self.state.moves_count)
            if record:
                self.leaderboard.add_result(
                    self.config.player_name,
                    self.state.current_difficulty,
                    self.state.elapsed_time,
                    self.state.moves_count,
                    self.state.hints_used,
                )
        return ""

    def is_valid_solution(self) -> Result:
        if len(self.state.placed_pieces) < self.target_pieces:
            return False, "Not all cells are covered by pieces."
        for position in self.grid.clue_cells():
            clue = self.grid.value_at(position)
            calculated = self.grid.constraint_value_at(position.row, position.col)
            if calculated != clue:
                return False, (
                    f"Incorrect sum at cell ({position.row}, {position.col}): expected {clue}, got {calculated}."
                )
        duplicate = self.grid.find_line_duplicate()
        if duplicate is not None:
            return False, duplicate
        return True, ""

    def check_solution(self) -> Result:
        return self.is_valid_solution()

    def check_cell(self, position: Position) -> Result:
        return self.hints.check_cell(position, self.grid)

    def auto_solve(self) -> Result:
        """Clear the board and lay out the generated solution piece by piece."""
        if not self.generator.has_solution:
            return False, "No solution available."
        while self.state.placed_pieces:
            last = self.state.placed_pieces[-1]
            self.remove_piece(last.position)
        message = ""
        for piece in self.generator.solution_pieces:
            ok, message = self._place(piece, piece.position, piece.orientation, record=False)
            if not ok:
                logger.warning("Auto-solve stopped at %r: %s", piece, message)
                return False, message
        return True, message

    # ---------- hints ----------

    def request_hint(self) -> Tuple[Optional[Hint], str]:
        if not self.generator.has_solution:
            return None, "No solution available."
        if not self.hints.can_provide_hint:
            return None, "No hints remaining."
        hint = self.hints.get_hint()
        if hint is None:
            return None, "Every solution piece is already placed."
        return hint, ""

    # ---------- clock ----------

    def update_elapsed_time(self, seconds: float) -> None:
        self.state.update_elapsed_time(seconds)

    def tick(self, delta: float) -> float:
        if not self.state.is_game_completed:
            self.state.update_elapsed_time(self.state.elapsed_time + float(delta))
        return self.state.elapsed_time

    # ---------- persistence ----------

    def save_game(self, path: str) -> Result:
        record = SaveRecord(
            difficulty=int(self.state.current_difficulty),
            hints_used=self.state.hints_used,
            moves_count=self.state.moves_count,
            elapsed_time=self.state.elapsed_time,
            values=self.grid.clone_values(),
            pieces=[
                (p.value1, p.value2, p.position.row, p.position.col, int(p.orientation))
                for p in self.state.placed_pieces
            ],
            grid_size=self.grid.size,
        )
        try:
            with open(path, "wb") as fh:
                write_save(fh, record)
        except (OSError, ValueError, struct.error) as exc:
            logger.warning("Save to %s failed: %s", path, exc)
            return False, f"Failed to save game: {exc}"
        return True, ""

    def load_game(self, path: str) -> Result:
        """Replace the session with the one saved at ``path``.

        Pieces are replayed through the placement rules on a fresh board; the
        current session is only swapped out once every piece went down.
        """
        try:
            with open(path, "rb") as fh:
                record = read_save(fh, GRID_SIZE)
            state, grid = self._rebuild_session(record)
        except GridSizeMismatchError:
            return False, f"Grid size mismatch. Expected {GRID_SIZE}x{GRID_SIZE} grid."
        except (OSError, ValueError, struct.error) as exc:
            logger.warning("Load from %s failed: %s", path, exc)
            return False, f"Failed to load game: {exc}"

        self.state = state
        self.grid = grid
        self.generator.clear()
        self.hints = HintSystem(self.generator, self.state)
        logger.info("Loaded %s with %d pieces", path, len(state.placed_pieces))
        return True, ""

    def _rebuild_session(self, record: SaveRecord) -> Tuple[GameState, GameGrid]:
        state = GameState()
        state.set_difficulty(Difficulty(record.difficulty))
        grid = GameGrid(GRID_SIZE, state.placed_pieces)

        covered = set()
        pieces = []
        for v1, v2, row, col, orient in record.pieces:
            piece = Piece(v1, v2)
            orientation = Orientation(orient)
            anchor = Position(row, col)
            covered.add(anchor)
            covered.add(anchor.second_cell(orientation))
            pieces.append((piece, anchor, orientation))

        for row in range(GRID_SIZE):
            for col in range(GRID_SIZE):
                value = int(record.values[row, col])
                if value > 0 and Position(row, col) not in covered:
                    grid.set_value(row, col, value)

        for piece, anchor, orientation in pieces:
            ok, message = self._try_place(state, grid, piece, anchor, orientation)
            if not ok:
                raise ValueError(f"piece {piece!r} at ({anchor.row}, {anchor.col}): {message}")

        state.hints_used = record.hints_used
        state.moves_count = record.moves_count
        state.update_elapsed_time(record.elapsed_time)
        # the save file carries no solution; assume the configured solution size
        state.target_pieces = self.config.generator.solution_pieces
        return state, grid

    # ---------- snapshots ----------

    def get_state(self) -> Dict[str, Any]:
        return {
            "grid": self.grid.clone_values().tolist(),
            "occupancy": self.grid.clone_occupancy().tolist(),
            "placed_pieces": [
                (p.value1, p.value2, p.position.row, p.position.col, int(p.orientation))
                for p in self.state.placed_pieces
            ],
            "remaining_pieces": self.state.remaining_pieces_count,
            "difficulty": self.state.current_difficulty.name,
            "moves": self.state.moves_count,
            "hints_used": self.state.hints_used,
            "max_hints": self.state.max_hints,
            "elapsed_time": self.state.elapsed_time,
            "completed": self.state.is_game_completed,
            "has_solution": self.generator.has_solution,
        }


def format_grid(grid: GameGrid) -> str:
    """Text board: pip values in brackets for covered cells, clue numbers, dots for empty."""
    lines = []
    for row in range(grid.size):
        cells = []
        for col in range(grid.size):
            index = int(grid.occupancy[row, col])
            if index != EMPTY and index < len(grid.pieces):
                piece = grid.pieces[index]
                pip = piece.value1 if piece.position == Position(row, col) else piece.value2
                cells.append(f"[{pip}]")
            elif grid.values[row, col] > 0:
                cells.append(f"{int(grid.values[row, col]):>2} ")
            else:
                cells.append(" . ")
        lines.append("".join(cells))
    return "\n".join(lines)


def print_grid(manager: GameManager) -> None:
    print(format_grid(manager.grid))
    print(
        f"moves={manager.moves_count} hints={manager.hints_used}/{manager.max_hints} "
        f"placed={len(manager.placed_pieces)}/{manager.target_pieces}"
    )


def run_game_demo(difficulty: Difficulty = Difficulty.MEDIUM, seed: Optional[int] = None) -> None:
    config = GameConfig(leaderboard_path=None)
    manager = GameManager(config)
    if not manager.new_game(difficulty, seed=seed):
        print("Could not generate a puzzle.")
        return
    print_grid(manager)

    hint, message = manager.request_hint()
    if hint is not None:
        print(f"Hint: {hint.piece!r} at ({hint.first.row}, {hint.first.col})-({hint.second.row}, {hint.second.col})")
        orientation = Orientation.HORIZONTAL if hint.first.row == hint.second.row else Orientation.VERTICAL
        ok, message = manager.place_piece(hint.piece, hint.first, orientation)
        print(f"Placed hint piece: {ok} {message}")
    else:
        print(message)

    ok, message = manager.auto_solve()
    print(f"Auto-solve: {ok} {message}")
    print_grid(manager)
    valid, message = manager.check_solution()
    print("Solved!" if valid else f"Not solved: {message}")


if __name__ == "__main__":  # pragma: no cover
    run_game_demo()
