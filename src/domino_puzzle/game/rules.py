from __future__ import annotations

from enum import IntEnum


class Difficulty(IntEnum):
    EASY = 0
    MEDIUM = 1
    HARD = 2


MAX_HINTS = {
    Difficulty.EASY: 7,
    Difficulty.MEDIUM: 5,
    Difficulty.HARD: 3,
}

# Divisors of the cell count (N*N); a full 9x9 board gives 20 / 13 / 10 pieces.
_INITIAL_PIECE_DIVISOR = {
    Difficulty.EASY: 4,
    Difficulty.MEDIUM: 6,
    Difficulty.HARD: 8,
}

# 10 / 13 / 20 hidden clue cells on a 9x9 board.
_HIDDEN_CLUE_DIVISOR = {
    Difficulty.EASY: 8,
    Difficulty.MEDIUM: 6,
    Difficulty.HARD: 4,
}


def max_hints_for(difficulty: Difficulty) -> int:
    return MAX_HINTS.get(Difficulty(difficulty), 5)


def initial_piece_count(difficulty: Difficulty, grid_size: int) -> int:
    return (grid_size * grid_size) // _INITIAL_PIECE_DIVISOR.get(Difficulty(difficulty), 6)


def hidden_clue_count(difficulty: Difficulty, grid_size: int) -> int:
    return (grid_size * grid_size) // _HIDDEN_CLUE_DIVISOR.get(Difficulty(difficulty), 6)
