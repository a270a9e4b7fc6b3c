# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Add src/ to sys.path so "domino_puzzle" imports without an install
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from domino_puzzle.game import Difficulty, GameConfig, GameManager, GeneratorConfig  # noqa: E402

SEED = 7


@pytest.fixture
def config():
    return GameConfig(leaderboard_path=None, generator=GeneratorConfig(random_seed=SEED))


@pytest.fixture
def empty_manager(config):
    return GameManager(config)


@pytest.fixture
def manager(config):
    m = GameManager(config)
    assert m.new_game(Difficulty.MEDIUM, seed=SEED)
    return m
