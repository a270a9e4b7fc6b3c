"""Game module for the domino tiling puzzle.

Exports the engine and its supporting classes:
- Piece / Position / Orientation: domino tiles and board coordinates
- GameGrid: cell values, occupancy and placement rules
- GameState: placed pieces, available pool and counters
- PuzzleGenerator: solution search, clue grid and starting layout
- HintSystem: reveals unplaced solution pieces
- Leaderboard: best completion times
- GameManager: player actions, validation and save/load
"""

from .pieces import INVALID_POSITION, Orientation, Piece, Position, standard_inventory
from .rules import Difficulty
from .grid import BoardConsistencyError, GameGrid
from .state import GameState
from .generator import GeneratorConfig, PuzzleGenerator
from .hints import Hint, HintSystem
from .leaderboard import Leaderboard, LeaderboardEntry
from .core import GameConfig, GameManager, format_grid, print_grid, run_game_demo

__all__ = [
    "INVALID_POSITION",
    "Orientation",
    "Piece",
    "Position",
    "standard_inventory",
    "Difficulty",
    "BoardConsistencyError",
    "GameGrid",
    "GameState",
    "GeneratorConfig",
    "PuzzleGenerator",
    "Hint",
    "HintSystem",
    "Leaderboard",
    "LeaderboardEntry",
    "GameConfig",
    "GameManager",
    "format_grid",
    "print_grid",
    "run_game_demo",
]
