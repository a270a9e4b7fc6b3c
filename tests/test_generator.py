from itertools import combinations

import pytest

from domino_puzzle.game.generator import GeneratorConfig, PuzzleGenerator
from domino_puzzle.game.grid import EMPTY
from domino_puzzle.game.rules import Difficulty, hidden_clue_count
from domino_puzzle.game.state import GameState


def _generate(seed: int, difficulty: Difficulty = Difficulty.MEDIUM, **overrides):
    generator = PuzzleGenerator(GeneratorConfig(random_seed=seed, **overrides))
    state = GameState()
    ok = generator.generate_puzzle(state, difficulty)
    return ok, generator, state


def _touching(a, b) -> bool:
    return any(
        abs(p.row - q.row) <= 1 and abs(p.col - q.col) <= 1
        for p in a.occupied_positions()
        for q in b.occupied_positions()
    )


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 11, 42])
def test_solution_invariants(seed):
    ok, generator, _ = _generate(seed)
    assert ok and generator.has_solution
    pieces = generator.solution_pieces
    grid = generator.solution_grid

    assert len(pieces) == 8 or generator.used_fallback
    assert len(set(pieces)) == len(pieces)
    assert len({p.sum for p in pieces}) == len(pieces)
    assert grid.covered_cell_count() == 2 * len(pieces)
    for index, piece in enumerate(pieces):
        for cell in piece.occupied_positions():
            assert grid.occupant_at(cell) == index
    for a, b in combinations(pieces, 2):
        assert not _touching(a, b)
    assert grid.find_line_duplicate() is None


@pytest.mark.parametrize("seed", [0, 5])
def test_solution_is_valid_in_any_order(seed):
    _, generator, _ = _generate(seed)
    pieces = generator.solution_pieces
    for index, piece in enumerate(pieces):
        others = pieces[:index] + pieces[index + 1:]
        # every piece passes the one-way rule against the rest
        grid = generator.solution_grid
        assert grid.keeps_lines_unique(piece, piece.position, piece.orientation, ignore_index=index)
        assert piece.sum not in {p.sum for p in others}


def test_clues_match_constraint_sums():
    _, generator, _ = _generate(3)
    grid = generator.solution_grid
    for position, clue in generator.visible_clues():
        assert grid.occupant_at(position) == EMPTY
        assert clue == grid.constraint_value_at(position.row, position.col) > 0


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_hidden_clues_scale_with_difficulty(difficulty):
    _, generator, _ = _generate(4, difficulty)
    grid = generator.solution_grid
    hidden = generator.hidden_clues
    total = len(hidden) + len(generator.visible_clues())
    assert len(hidden) == min(hidden_clue_count(difficulty, 9), total)
    for position in hidden:
        assert grid.value_at(position) == 0
        assert grid.constraint_value_at(position.row, position.col) > 0


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_initial_pieces_are_part_of_solution(difficulty):
    _, generator, _ = _generate(6, difficulty)
    initial = generator.initial_pieces
    solution = {(p, p.position, p.orientation) for p in generator.solution_pieces}
    assert 1 <= len(initial) <= len(generator.solution_pieces) - 1
    for piece in initial:
        assert piece.is_placed
        assert (piece, piece.position, piece.orientation) in solution
    assert len(set(initial)) == len(initial)


def test_easy_starts_with_more_pieces_than_hard():
    _, easy, _ = _generate(8, Difficulty.EASY)
    _, hard, _ = _generate(8, Difficulty.HARD)
    assert len(easy.initial_pieces) >= len(hard.initial_pieces)


def test_available_pool_holds_full_inventory():
    _, generator, state = _generate(9)
    assert len(state.available_pieces) == 21
    for piece in generator.initial_pieces:
        assert piece in state.available_pieces


def test_same_seed_same_puzzle():
    _, first, _ = _generate(21)
    _, second, _ = _generate(21)
    assert [(p.canonical(), p.position, p.orientation) for p in first.solution_pieces] == [
        (p.canonical(), p.position, p.orientation) for p in second.solution_pieces
    ]
    assert first.hidden_clues == second.hidden_clues
    assert (first.solution_grid.values == second.solution_grid.values).all()


def test_exhausted_search_uses_fallback():
    ok, generator, state = _generate(1, max_attempts=2, max_search_steps=0)
    assert ok and generator.has_solution
    assert generator.used_fallback
    assert len(generator.solution_pieces) >= 21 // 3
    assert generator.solution_grid.find_line_duplicate() is None
    assert len({p.sum for p in generator.solution_pieces}) == len(generator.solution_pieces)
    assert generator.initial_pieces
    assert all(p in state.available_pieces for p in generator.solution_pieces)


def test_clear_discards_solution():
    _, generator, _ = _generate(2)
    generator.clear()
    assert not generator.has_solution
    assert generator.solution_pieces == []
    assert generator.initial_pieces == []
    assert generator.solution_grid.covered_cell_count() == 0


def test_rejects_other_grid_sizes():
    with pytest.raises(ValueError):
        PuzzleGenerator(GeneratorConfig(grid_size=7))
