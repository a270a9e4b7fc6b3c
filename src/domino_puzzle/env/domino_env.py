from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from domino_puzzle.game import (
    Difficulty,
    GameConfig,
    GameManager,
    Orientation,
    Position,
    standard_inventory,
)

INVENTORY = standard_inventory()
ActionTuple = Tuple[int, int, int, int]


def _compute_action_mask(manager: GameManager) -> np.ndarray:
    size = manager.grid_size
    mask = np.zeros((len(INVENTORY), size, size, 2), dtype=np.bool_)
    used = manager.state.used_sums
    slots = manager.open_slots()
    for piece_idx, piece in enumerate(INVENTORY):
        if piece.sum in used:
            continue
        for position, orient in manager.valid_placements(piece, slots):
            mask[piece_idx, position.row, position.col, int(orient)] = True
    return mask


def _valid_actions(mask: np.ndarray) -> List[ActionTuple]:
    return [tuple(int(v) for v in idx) for idx in np.argwhere(mask)]  # type: ignore[misc]


class DominoPuzzleEnv(gym.Env):
    """One step places one inventory piece at (row, col) with an orientation.

    The episode terminates once the board is solved. Invalid placements leave
    the board unchanged and cost ``invalid_action_penalty``.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 4}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 difficulty: Difficulty = Difficulty.MEDIUM,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -0.1,
                 step_penalty: float = -0.01,
                 max_episode_steps: int = 200) -> None:
        super().__init__()
        self.manager = GameManager(config or GameConfig(leaderboard_path=None))
        self.difficulty = Difficulty(difficulty)
        self.render_mode = render_mode
        self.max_episode_steps = int(max_episode_steps)

        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.reward_weights: Dict[str, float] = {
            "placement": 1.0,   # per accepted piece
            "solved": 10.0,     # board validated
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        size = self.manager.grid_size
        n = len(INVENTORY)
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=127, shape=(size, size), dtype=np.int16),
                "occupied": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "available": spaces.Box(low=0, high=1, shape=(n,), dtype=np.int8),
            }
        )
        # Action: (inventory index, row, col, orientation)
        self.action_space = spaces.MultiDiscrete((n, size, size, 2))

        self._steps = 0
        self._mask: Optional[np.ndarray] = None

    def action_mask(self) -> np.ndarray:
        if self._mask is None:
            self._mask = _compute_action_mask(self.manager)
        return self._mask.copy()

    def _get_obs(self) -> Dict[str, Any]:
        grid = self.manager.grid
        placed = set(self.manager.state.placed_pieces)
        available = np.array([0 if p in placed else 1 for p in INVENTORY], dtype=np.int8)
        return {
            "grid": np.clip(grid.clone_values(), 0, 127).astype(np.int16),
            "occupied": (grid.clone_occupancy() >= 0).astype(np.int8),
            "available": available,
        }

    def _get_info(self) -> Dict[str, Any]:
        mask = self.action_mask()
        return {
            "action_mask": mask,
            "valid_actions": _valid_actions(mask),
            "moves": self.manager.moves_count,
            "placed": len(self.manager.state.placed_pieces),
            "target": self.manager.target_pieces,
            "completed": self.manager.is_game_completed,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if options and "difficulty" in options:
            self.difficulty = Difficulty(options["difficulty"])
        puzzle_seed = seed if seed is not None else int(self.np_random.integers(0, 2**31 - 1))
        if not self.manager.new_game(self.difficulty, seed=puzzle_seed):
            raise RuntimeError("Puzzle generation failed")
        self._steps = 0
        self._mask = None
        return self._get_obs(), self._get_info()

    def step(self, action: np.ndarray | ActionTuple):
        piece_idx, row, col, orient = map(int, action)
        reward_components: Dict[str, float] = {}
        message = ""

        if 0 <= piece_idx < len(INVENTORY) and orient in (0, 1):
            success, message = self.manager.place_piece(INVENTORY[piece_idx], Position(row, col), Orientation(orient))
        else:
            success, message = False, "Action out of range."

        if success:
            self._mask = None
            reward_components["placement"] = self.reward_weights["placement"]
        else:
            reward_components["invalid"] = self.invalid_action_penalty
        reward_components["step"] = self.step_penalty

        terminated = bool(self.manager.is_game_completed)
        if terminated:
            reward_components["solved"] = self.reward_weights["solved"]
        self._steps += 1
        truncated = not terminated and self._steps >= self.max_episode_steps

        reward = float(sum(reward_components.values()))
        info = self._get_info()
        info["reward_components"] = reward_components
        info["message"] = message
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        grid = self.manager.grid
        cell = 16
        size = grid.size
        img = np.zeros((size * cell, size * cell, 3), dtype=np.uint8)
        for row in range(size):
            for col in range(size):
                if grid.is_covered(row, col):
                    color = (70, 200, 120)
                elif grid.values[row, col] > 0:
                    color = (80, 120, 220)
                else:
                    color = (30, 30, 36)
                img[row * cell : (row + 1) * cell, col * cell : (col + 1) * cell, :] = color
                # one-pixel grid lines
                img[row * cell, col * cell : (col + 1) * cell, :] = 0
                img[row * cell : (row + 1) * cell, col * cell, :] = 0
        return img

    def close(self) -> None:
        pass
