import pytest

from domino_puzzle.game.pieces import (
    INVALID_POSITION,
    Orientation,
    Piece,
    Position,
    standard_inventory,
)


def test_swapped_values_are_the_same_piece():
    for a in range(7):
        for b in range(7):
            assert Piece(a, b) == Piece(b, a)
            assert hash(Piece(a, b)) == hash(Piece(b, a))
    assert Piece(1, 2).sum == 3
    assert Piece(2, 1).canonical() == (1, 2)


def test_equality_ignores_placement():
    placed = Piece(3, 5).placed_at(Position(2, 2), Orientation.VERTICAL)
    assert placed == Piece(5, 3)
    assert placed in {Piece(3, 5)}


def test_ordering_uses_canonical_pair():
    assert sorted([Piece(4, 1), Piece(0, 6), Piece(2, 1)]) == [Piece(0, 6), Piece(1, 2), Piece(1, 4)]


def test_pip_range_is_enforced():
    with pytest.raises(ValueError):
        Piece(0, 7)
    with pytest.raises(ValueError):
        Piece(-1, 2)


def test_placed_at_returns_new_instance():
    piece = Piece(1, 2)
    placed = piece.placed_at(Position(0, 0), Orientation.HORIZONTAL)
    assert placed is not piece
    assert not piece.is_placed
    assert piece.position == INVALID_POSITION
    assert placed.is_placed
    assert placed.occupied_positions() == [Position(0, 0), Position(0, 1)]
    assert placed.unplaced().is_placed is False


def test_vertical_second_cell():
    placed = Piece(1, 2).placed_at(Position(4, 7), Orientation.VERTICAL)
    assert placed.occupied_positions() == [Position(4, 7), Position(5, 7)]


def test_position_validity_and_order():
    assert not INVALID_POSITION.is_valid()
    assert Position(0, 8).is_valid_for_grid(9)
    assert not Position(0, 9).is_valid_for_grid(9)
    assert Position(0, 8) < Position(1, 0)
    assert min(Position(3, 4), Position(3, 3)) == Position(3, 3)


def test_can_be_placed_at_checks_second_cell():
    piece = Piece(0, 1)
    assert piece.can_be_placed_at(Position(8, 7), Orientation.HORIZONTAL, 9)
    assert not piece.can_be_placed_at(Position(8, 8), Orientation.HORIZONTAL, 9)
    assert not piece.can_be_placed_at(Position(8, 0), Orientation.VERTICAL, 9)


def test_standard_inventory():
    inventory = standard_inventory()
    assert len(inventory) == 21
    assert len(set(inventory)) == 21
    assert all(p.value1 != p.value2 for p in inventory)
    assert {p.sum for p in inventory} == set(range(1, 12))


def test_repr():
    assert repr(Piece(2, 5)) == "[2,5]"
