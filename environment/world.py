"""
Tile world holding the food that agents compete for.
Food capacity per tile comes from an injected terrain sampler.
"""

import math
from typing import Callable, Optional, Tuple

import numpy as np

from config import CONFIG
from environment.terrain import TerrainSampler
from errors import ConfigError


def _tile_of(position, world_size) -> Optional[Tuple[int, int]]:
    x, y = position
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    tx, ty = int(math.floor(x)), int(math.floor(y))
    if 0 <= tx < world_size[0] and 0 <= ty < world_size[1]:
        return tx, ty
    return None


class WorldSnapshot:
    """Read-only view of the world's food taken at the start of a tick."""

    __slots__ = ("world_size", "food", "max_food_per_tile", "step")

    def __init__(self, world_size, food, max_food_per_tile, step):
        self.world_size = world_size
        self.food = food
        self.max_food_per_tile = max_food_per_tile
        self.step = step

    def food_at(self, position) -> float:
        """Food on the tile under ``position``; 0 outside the world."""
        tile = _tile_of(position, self.world_size)
        if tile is None:
            return 0.0
        return float(self.food[tile])


class World:
    """
    Integrated world environment: terrain-driven food tiles.
    Provides a unified interface for the simulation to interact with the environment.
    """

    def __init__(self, config=None, sampler: Optional[Callable[[float, float], float]] = None):
        """
        Initialize the world environment.

        Args:
            config: Configuration dictionary (optional)
            sampler: ``sample(x, y) -> float`` terrain function (optional)
        """
        self.config = config or CONFIG
        self.world_size = tuple(self.config["world_size"])
        self.max_food_per_tile = float(self.config["max_food_per_tile"])
        self.regrow_rate = float(self.config["food_regrow_rate"])
        self.step = 0

        if sampler is None:
            sampler = TerrainSampler(
                self.world_size,
                seed=self.config["seed"],
                smoothing=self.config["terrain_smoothing"],
            )
        self.sampler = sampler

        self.max_food = self._build_capacity()
        self.food = self.max_food.copy()

    def _build_capacity(self):
        """
        Sample the terrain at every tile center and scale to food capacity.

        Raises:
            ConfigError: If the sampler returns a non-finite value
        """
        width, height = self.world_size
        capacity = np.empty((width, height))
        for x in range(width):
            for y in range(height):
                value = float(self.sampler(x + 0.5, y + 0.5))
                if not math.isfinite(value):
                    raise ConfigError(
                        f"terrain sampler returned {value} at ({x + 0.5}, {y + 0.5})"
                    )
                capacity[x, y] = min(1.0, max(0.0, value)) * self.max_food_per_tile
        capacity.setflags(write=False)
        return capacity

    def reset(self):
        """Restore every tile to full capacity."""
        self.food = self.max_food.copy()
        self.step = 0

    def tile(self, position) -> Optional[Tuple[int, int]]:
        """Tile index under ``position``, or None if out of world bounds."""
        return _tile_of(position, self.world_size)

    def food_at(self, position) -> float:
        tile = self.tile(position)
        if tile is None:
            return 0.0
        return float(self.food[tile])

    def consume(self, position, amount) -> float:
        """
        Remove up to ``amount`` food from the tile under ``position``.

        Returns:
            Food actually removed
        """
        tile = self.tile(position)
        if tile is None or amount <= 0:
            return 0.0
        eaten = min(float(self.food[tile]), float(amount))
        self.food[tile] -= eaten
        return eaten

    def regrow(self):
        """Grow food back towards each tile's capacity."""
        self.step += 1
        if self.regrow_rate > 0:
            np.minimum(self.food + self.regrow_rate * self.max_food, self.max_food, out=self.food)

    def snapshot(self) -> WorldSnapshot:
        """Immutable copy of the food grid for the sensing phase."""
        food = self.food.copy()
        food.setflags(write=False)
        return WorldSnapshot(self.world_size, food, self.max_food_per_tile, self.step)

    def total_food(self) -> float:
        return float(np.sum(self.food))

