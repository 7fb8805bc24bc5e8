"""
Environment package for the terrain sampler and food tile world.
"""

from environment.terrain import TerrainSampler
from environment.world import World, WorldSnapshot

__all__ = [
    'TerrainSampler',
    'World',
    'WorldSnapshot'
]
