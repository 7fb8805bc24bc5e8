"""
Procedural terrain sampling.
The simulation only sees the ``sample(x, y) -> float`` contract; this module
provides the default seeded implementation.
"""

import numpy as np
from scipy.ndimage import gaussian_filter, map_coordinates

from config import CONFIG


class TerrainSampler:
    """
    Smooth random field over the world, normalized to [0, 1].

    Values are defined on tile centers and bilinearly interpolated in between,
    so ``sample`` is pure and deterministic for a given seed.
    """

    def __init__(self, world_size=None, seed=None, smoothing=None):
        """
        Initialize the terrain field.

        Args:
            world_size: (width, height) in tiles
            seed: Seed of the generator that draws the raw field
            smoothing: Gaussian sigma in tiles
        """
        self.world_size = tuple(world_size or CONFIG["world_size"])
        self.seed = CONFIG["seed"] if seed is None else seed
        self.smoothing = CONFIG["terrain_smoothing"] if smoothing is None else smoothing

        self.height_map = self._generate_height_map()
        self.height_map.setflags(write=False)

    def _generate_height_map(self):
        random_gen = np.random.default_rng(self.seed)
        height_map = random_gen.random(self.world_size)

        # Smooth the map
        if self.smoothing > 0:
            height_map = gaussian_filter(height_map, sigma=self.smoothing, mode="wrap")

        # Normalize to 0-1
        min_val = np.min(height_map)
        max_val = np.max(height_map)
        if max_val > min_val:
            height_map = (height_map - min_val) / (max_val - min_val)
        else:
            height_map = np.full(self.world_size, 0.5)

        return height_map

    def sample(self, x, y) -> float:
        """Terrain value at a continuous world coordinate."""
        coords = np.array([[x - 0.5], [y - 0.5]])
        return float(map_coordinates(self.height_map, coords, order=1, mode="nearest")[0])

    __call__ = sample
