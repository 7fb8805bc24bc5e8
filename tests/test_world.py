import numpy as np
import pytest
from pytest import approx

from config import load_config
from environment.terrain import TerrainSampler
from environment.world import World
from errors import ConfigError


def _config(**overrides):
    values = dict(world_size=(4, 3), max_food_per_tile=2.0, food_regrow_rate=0.25)
    values.update(overrides)
    return load_config(**values)


def test_capacity_follows_sampler_and_is_clipped():
    world = World(_config(), lambda x, y: x - 1.0)

    # Tile centers sit at x + 0.5: values -0.5, 0.5, 1.5, 2.5 before clipping
    assert world.max_food[:, 0].tolist() == approx([0.0, 1.0, 2.0, 2.0])
    assert world.food.shape == (4, 3)
    assert world.total_food() == approx(3 * 5.0)


def test_non_finite_samples_are_reported():
    with pytest.raises(ConfigError, match=r"\(0.5, 0.5\)"):
        World(_config(), lambda x, y: float("nan"))

    with pytest.raises(ConfigError):
        World(_config(), lambda x, y: float("inf") if x > 3 else 0.5)


def test_consume_removes_at_most_what_is_there():
    world = World(_config(), lambda x, y: 1.0)

    assert world.consume((1.5, 1.5), 1.5) == approx(1.5)
    assert world.consume((1.9, 1.1), 1.5) == approx(0.5)
    assert world.consume((1.5, 1.5), 1.0) == 0.0
    assert world.consume((-1.0, 1.0), 1.0) == 0.0
    assert world.consume((2.5, 2.5), 0.0) == 0.0


def test_regrow_is_capped_by_capacity():
    world = World(_config(), lambda x, y: 1.0)
    world.consume((0.5, 0.5), 2.0)

    world.regrow()
    assert world.food_at((0.5, 0.5)) == approx(0.5)

    for _ in range(10):
        world.regrow()
    assert world.food_at((0.5, 0.5)) == approx(2.0)
    assert world.step == 11


def test_snapshot_is_read_only_and_detached():
    world = World(_config(), lambda x, y: 1.0)
    snapshot = world.snapshot()

    world.consume((0.5, 0.5), 2.0)

    assert snapshot.food_at((0.5, 0.5)) == approx(2.0)
    assert world.food_at((0.5, 0.5)) == 0.0
    with pytest.raises(ValueError):
        snapshot.food[0, 0] = 1.0


def test_reset_restores_capacity():
    world = World(_config(), lambda x, y: 1.0)
    world.consume((3.5, 2.5), 2.0)
    world.regrow()

    world.reset()

    assert np.array_equal(world.food, world.max_food)
    assert world.step == 0


def test_out_of_bounds_positions():
    world = World(_config(), lambda x, y: 1.0)

    assert world.tile((4.0, 1.0)) is None
    assert world.tile((1.0, -0.1)) is None
    assert world.tile((float("nan"), 1.0)) is None
    assert world.food_at((10.0, 10.0)) == 0.0


def test_terrain_sampler_is_deterministic_and_normalized():
    a = TerrainSampler((12, 9), seed=3, smoothing=1.5)
    b = TerrainSampler((12, 9), seed=3, smoothing=1.5)
    c = TerrainSampler((12, 9), seed=4, smoothing=1.5)

    points = [(x * 0.7, y * 0.6) for x in range(17) for y in range(15)]
    values = [a.sample(x, y) for x, y in points]

    assert values == [b.sample(x, y) for x, y in points]
    assert values != [c.sample(x, y) for x, y in points]
    assert min(values) >= 0.0
    assert max(values) <= 1.0


def test_terrain_sampler_hits_grid_values_at_tile_centers():
    sampler = TerrainSampler((5, 5), seed=1, smoothing=1.0)

    assert sampler(2.5, 3.5) == approx(sampler.height_map[2, 3])


def test_default_world_uses_seeded_terrain():
    config = _config(seed=11, world_size=(6, 6))

    assert np.array_equal(World(config).max_food, World(config).max_food)
