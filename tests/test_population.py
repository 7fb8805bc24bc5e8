import numpy as np
import pytest
from pytest import approx

from agents.fitness import FitnessEvaluator
from agents.genome import random_genomes
from config import NN_CONFIG, layer_activations, layer_sizes
from errors import LifecycleError
from simulation.population import LifecycleState, Population, genome_diversity


def _genomes(config, rng, count=None):
    return random_genomes(
        count or config["population_size"],
        layer_sizes(config),
        layer_activations(config, NN_CONFIG),
        rng,
    )


def test_spawn_keeps_genome_order(small_config, rng):
    genomes = _genomes(small_config, rng)

    population = Population.spawn(genomes, rng, small_config, generation=4)

    assert len(population) == small_config["population_size"]
    assert population.generation == 4
    assert population.state is LifecycleState.SPAWNING
    assert [agent.id for agent in population] == list(range(len(genomes)))
    assert all(agent.genome is genome for agent, genome in zip(population, genomes))
    assert population.active == list(range(len(genomes)))


def test_spawn_places_agents_inside_the_world(small_config, rng):
    population = Population.spawn(_genomes(small_config, rng), rng, small_config)
    width, height = small_config["world_size"]

    for agent in population:
        assert 0.0 <= agent.position[0] < width
        assert 0.0 <= agent.position[1] < height


def test_lifecycle_must_follow_its_order(small_config, rng):
    population = Population.spawn(_genomes(small_config, rng), rng, small_config)

    with pytest.raises(LifecycleError):
        population.begin_evolution()
    with pytest.raises(LifecycleError):
        population.evaluated_genomes()

    population.begin_simulation()
    with pytest.raises(LifecycleError):
        population.begin_simulation()

    population.evaluate(FitnessEvaluator())
    assert population.state is LifecycleState.EVALUATED
    with pytest.raises(LifecycleError):
        population.evaluate(FitnessEvaluator())

    population.begin_evolution()
    assert population.state is LifecycleState.EVOLVING


def test_evaluate_reports_statistics(small_config, rng):
    population = Population.spawn(_genomes(small_config, rng), rng, small_config, generation=2)
    for agent, fitness in zip(population, [3.0, -1.0, 5.0, 0.0, 2.0, 1.0]):
        agent.fitness = fitness
    population.agents[1].alive = False
    population.begin_simulation()

    stats = population.evaluate(FitnessEvaluator())

    assert population.fitness == [3.0, 0.0, 5.0, 0.0, 2.0, 1.0]
    assert stats.generation == 2
    assert stats.best == 5.0
    assert stats.worst == 0.0
    assert stats.mean == approx(11.0 / 6)
    assert stats.survivors == 5
    assert stats.diversity > 0.0
    assert [g for g, _ in population.evaluated_genomes()] == population.genomes


def test_refresh_active_drops_dead_agents(small_config, rng):
    population = Population.spawn(_genomes(small_config, rng), rng, small_config)
    population.agents[0].alive = False
    population.agents[3].alive = False

    assert population.refresh_active() == [1, 2, 4, 5]
    assert [agent.id for agent in population.live_agents()] == [1, 2, 4, 5]
    assert not population.all_dead

    for agent in population:
        agent.alive = False
    population.refresh_active()
    assert population.all_dead


def test_diversity_of_identical_genomes_is_zero(small_config, rng):
    genome = _genomes(small_config, rng, 1)[0]

    assert genome_diversity([genome, genome, genome]) == 0.0
    assert genome_diversity([genome]) == 0.0


def test_diversity_is_mean_pairwise_distance(small_config, rng):
    a, b, c = _genomes(small_config, rng, 3)
    expected = np.mean([a.distance(b), a.distance(c), b.distance(c)])

    assert genome_diversity([a, b, c]) == approx(expected)


def test_get_state_reflects_population(small_config, rng):
    population = Population.spawn(_genomes(small_config, rng), rng, small_config)

    state = population.get_state()

    assert state["state"] == "spawning"
    assert state["alive"] == small_config["population_size"]
    assert len(state["agents"]) == small_config["population_size"]
    assert state["stats"] is None
