"""Gymnasium environments for the domino tiling puzzle."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Medium-difficulty 9x9 puzzle, one placement per step
register(
    id="DominoPuzzle-9x9-v0",
    entry_point="domino_puzzle.env.domino_env:DominoPuzzleEnv",
    max_episode_steps=200,
)

__all__ = []
