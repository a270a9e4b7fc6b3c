import numpy as np
import pytest

from domino_puzzle.game.grid import EMPTY, BoardConsistencyError, GameGrid
from domino_puzzle.game.pieces import Orientation, Piece, Position

H = Orientation.HORIZONTAL
V = Orientation.VERTICAL


def _put(grid: GameGrid, piece: Piece, row: int, col: int, orient: Orientation) -> Piece:
    placed = piece.placed_at(Position(row, col), orient)
    grid.pieces.append(placed)
    grid.place(placed, placed.position, orient, len(grid.pieces) - 1)
    return placed


def test_only_nine_by_nine():
    with pytest.raises(ValueError):
        GameGrid(8)


def test_place_writes_sum_and_index():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    assert grid.values[0, 0] == 3 and grid.values[0, 1] == 3
    assert grid.occupancy[0, 0] == 0 and grid.occupancy[0, 1] == 0
    assert grid.covered_cell_count() == 2


def test_can_place_on_empty_board():
    grid = GameGrid()
    assert grid.can_place(Piece(1, 2), Position(0, 0), H)
    assert not grid.can_place(Piece(1, 2), Position(0, 8), H)
    assert not grid.can_place(Piece(1, 2), Position(8, 0), V)
    assert grid.placement_violation(Piece(1, 2), Position(9, 0), H) == "Position out of bounds."


def test_adjacent_and_diagonal_pieces_rejected():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    assert grid.placement_violation(Piece(3, 4), Position(0, 2), H) == "Piece would be adjacent to another piece."
    assert grid.would_touch_other_pieces(Position(1, 2), H)
    assert not grid.would_touch_other_pieces(Position(2, 0), H)


def test_used_sum_rejected():
    grid = GameGrid()
    violation = grid.placement_violation(Piece(0, 3), Position(4, 4), H, used_sums={3})
    assert violation == "Sum 3 is already used on the board."


def test_clue_cell_is_not_empty():
    grid = GameGrid()
    grid.set_value(5, 5, 4)
    assert grid.placement_violation(Piece(0, 1), Position(5, 4), H) == "Cell (5, 5) is not empty."


def test_row_and_column_digits_unique():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    assert grid.placement_violation(Piece(1, 5), Position(0, 5), H) == "Duplicate value in row 0."
    assert grid.placement_violation(Piece(2, 6), Position(3, 0), V) == "Duplicate value in column 0."
    assert grid.placement_violation(Piece(3, 4), Position(0, 5), H) is None


def test_line_rule_uses_anchor_cells():
    grid = GameGrid()
    # vertical piece anchored in row 2 also covers row 3
    _put(grid, Piece(1, 2), 2, 0, V)
    assert grid.find_line_duplicate() is None
    # candidate anchored in row 3 does not see the piece anchored in row 2
    assert grid.keeps_lines_unique(Piece(1, 5), Position(3, 4), H)
    # but the two-way check does
    assert not grid.keeps_lines_unique(Piece(1, 5), Position(3, 4), H, both_ways=True)


def test_find_line_duplicate_scans_whole_board():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    _put(grid, Piece(1, 5), 0, 4, H)
    assert grid.find_line_duplicate() == "Duplicate value in row 0."


def test_place_remove_restores_board():
    grid = GameGrid()
    _put(grid, Piece(0, 6), 6, 6, H)
    values = grid.clone_values()
    occupancy = grid.clone_occupancy()
    placed = _put(grid, Piece(1, 2), 0, 0, V)
    assert grid.remove(placed.position, placed)
    grid.pieces.pop()
    assert np.array_equal(grid.values, values)
    assert np.array_equal(grid.occupancy, occupancy)


def test_remove_from_empty_cell():
    grid = GameGrid()
    assert not grid.remove(Position(3, 3), Piece(1, 2).placed_at(Position(3, 3), H))


def test_constraint_value_counts_each_piece_once():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    assert grid.constraint_value_at(1, 1) == 3
    assert grid.constraint_value_at(1, 2) == 3
    assert grid.constraint_value_at(2, 2) == 0
    assert grid.constraint_value_at(-1, 0) == 0


def test_constraint_cache_cleared_on_placement():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    assert grid.constraint_value_at(1, 1) == 3
    _put(grid, Piece(0, 4), 2, 1, H)
    assert grid.constraint_value_at(1, 1) == 7


def test_rebuild_after_list_shift():
    grid = GameGrid()
    first = _put(grid, Piece(1, 2), 0, 0, H)
    _put(grid, Piece(0, 4), 4, 4, H)
    _put(grid, Piece(3, 6), 8, 0, H)
    grid.remove(first.position, first)
    grid.pieces.pop(0)
    grid.rebuild_occupancy_index()
    assert grid.occupancy.max() == len(grid.pieces) - 1
    assert grid.occupant_at(Position(4, 4)) == 0
    assert grid.occupant_at(Position(8, 1)) == 1
    assert grid.occupant_at(Position(0, 0)) == EMPTY


def test_rebuild_detects_collision():
    grid = GameGrid()
    grid.pieces.append(Piece(1, 2).placed_at(Position(0, 0), H))
    grid.pieces.append(Piece(3, 4).placed_at(Position(0, 1), V))
    with pytest.raises(BoardConsistencyError):
        grid.rebuild_occupancy_index()


def test_clue_cells_exclude_covered_cells():
    grid = GameGrid()
    _put(grid, Piece(1, 2), 0, 0, H)
    grid.set_value(1, 1, 3)
    assert grid.clue_cells() == [Position(1, 1)]
