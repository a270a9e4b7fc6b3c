from __future__ import annotations

from typing import Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces


class FlattenDiscreteActionWrapper(gym.ActionWrapper):
    """Single Discrete action id for each (piece, row, col, orientation) placement.

    Ids follow C order over the MultiDiscrete dimensions, so the flat mask is
    the env's 4-D placement mask reshaped.
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        if not isinstance(env.action_space, spaces.MultiDiscrete):
            raise TypeError("FlattenDiscreteActionWrapper needs a MultiDiscrete action space")
        self.dims: Tuple[int, ...] = tuple(int(n) for n in env.action_space.nvec)
        self.action_space = spaces.Discrete(int(np.prod(self.dims)))

    def action(self, action: int):  # type: ignore[override]
        return np.array(np.unravel_index(int(action), self.dims), dtype=np.int64)

    def get_action_mask(self) -> np.ndarray:
        return self.env.unwrapped.action_mask().reshape(-1)


class ResampleInvalidActionWrapper(gym.Wrapper):
    """Swaps a masked-out Discrete action for a random legal one.

    Needs a ``get_action_mask`` somewhere below it, normally a
    ``FlattenDiscreteActionWrapper``. With no legal action left the original
    action goes through and the env applies its invalid-action penalty.
    """

    def get_action_mask(self) -> np.ndarray:
        return self.env.get_wrapper_attr("get_action_mask")()

    def step(self, action):  # type: ignore[override]
        mask = self.get_action_mask()
        idx = int(action)
        if 0 <= idx < mask.shape[0] and not mask[idx]:
            legal = np.flatnonzero(mask)
            if legal.size:
                action = int(self.np_random.choice(legal))
        return self.env.step(action)
