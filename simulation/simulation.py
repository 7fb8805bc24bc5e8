"""
Main simulation class that drives generations.
Spawns a population, simulates it, scores it and evolves the next generation.
"""

import time

import numpy as np
import pandas as pd
from deap import tools
from loguru import logger
from tqdm import tqdm

from agents.evolution import EvolutionEngine
from agents.fitness import FitnessEvaluator
from agents.genome import check_io
from agents.serialization import load_population, save_population
from config import CONFIG, NN_CONFIG, validate_config
from environment.world import World
from errors import ConfigError
from simulation.population import Population
from simulation.scheduler import SimulationScheduler


class Simulation:
    """
    Manages the generation loop: Spawning -> Simulating -> Evaluated -> Evolving.
    One seeded generator is shared by placement, sensing noise and evolution.
    """

    def __init__(self, config=None, sampler=None, initial_genomes=None, nn_config=None):
        """
        Initialize simulation with configuration.

        Args:
            config: Custom configuration (optional)
            sampler: ``sample(x, y) -> float`` terrain function (optional)
            initial_genomes: Generation-0 genomes (random when omitted)
            nn_config: Network configuration (optional)
        """
        self.config = config or CONFIG
        self.nn_config = nn_config or NN_CONFIG
        validate_config(self.config, self.nn_config)

        self.rng = np.random.default_rng(self.config["seed"])
        self.world = World(self.config, sampler)
        self.evaluator = FitnessEvaluator()
        self.engine = EvolutionEngine(self.config, self.rng, self.nn_config)
        self.scheduler = SimulationScheduler(self.config, self.rng)

        self.generation = 0
        self.population = None
        self.last_stats = None

        self.logbook = tools.Logbook()
        self.logbook.header = ["gen", "best", "mean", "worst", "diversity", "survivors"]

        if initial_genomes is None:
            initial_genomes = self.engine.random_genomes()
        self._pending_genomes = None
        self.inject_genomes(initial_genomes)

    def inject_genomes(self, genomes):
        """
        Replace the genomes used at the next spawn.

        Raises:
            ConfigError: If the count does not match the population size
            ShapeError: If a genome does not fit the sensor/actuator counts
        """
        genomes = list(genomes)
        if len(genomes) != self.config["population_size"]:
            raise ConfigError(
                f"expected {self.config['population_size']} genomes, got {len(genomes)}"
            )
        for genome in genomes:
            check_io(genome, self.config["sensor_count"], self.config["actuator_count"])
        self._pending_genomes = genomes

    @property
    def pending_genomes(self):
        return list(self._pending_genomes)

    def run_generation(self):
        """
        Run one full generation.

        Returns:
            PopulationStats, or None if the run was aborted mid-generation.
            An abort request is used up by the generation it stops.
        """
        # Spawning
        self.world.reset()
        self.population = Population.spawn(
            self._pending_genomes, self.rng, self.config, self.generation
        )

        # Simulating
        self.population.begin_simulation()
        self.scheduler.step_generation(self.population, self.world, self.config["tick_budget"])
        if self.scheduler.abort_requested:
            self.scheduler.clear_abort()
            return None

        # Evaluated
        stats = self.population.evaluate(self.evaluator)
        self.last_stats = stats
        self.logbook.record(
            gen=stats.generation,
            best=stats.best,
            mean=stats.mean,
            worst=stats.worst,
            diversity=stats.diversity,
            survivors=stats.survivors,
        )
        logger.info(
            "Generation {} | best {:.2f} | mean {:.2f} | worst {:.2f} | diversity {:.3f} | "
            "survivors {}",
            stats.generation, stats.best, stats.mean, stats.worst, stats.diversity,
            stats.survivors,
        )

        # Evolving
        self.population.begin_evolution()
        self._pending_genomes = self.engine.evolve(self.population.evaluated_genomes())
        self.generation += 1

        return stats

    def run(self, generations=None, callback=None):
        """
        Run the simulation for a number of generations.

        Args:
            generations: Number of generations (None = use config)
            callback: Function called with the stats after each generation

        Returns:
            List of PopulationStats for the completed generations
        """
        if generations is None:
            generations = self.config["generations"]

        logger.info("Starting simulation for {} generations...", generations)
        start_time = time.time()
        history = []
        self.scheduler.clear_abort()

        try:
            for _ in tqdm(range(generations), desc="Evolution Progress"):
                stats = self.run_generation()
                if stats is None:
                    logger.warning("Simulation stopped at generation {}", self.generation)
                    break

                history.append(stats)
                if callback:
                    callback(stats)

                if self.scheduler.abort_requested:
                    self.scheduler.clear_abort()
                    logger.warning("Simulation stopped after generation {}", stats.generation)
                    break

        except KeyboardInterrupt:
            logger.warning("Simulation stopped by user.")

        finally:
            # Clean up resources
            self.scheduler.close()

        elapsed = time.time() - start_time
        logger.info("Simulation completed {} generations in {:.1f}s", len(history), elapsed)
        return history

    def abort(self):
        """Stop the run at the next tick boundary."""
        self.scheduler.request_abort()

    def history_frame(self) -> pd.DataFrame:
        """Per-generation statistics as a DataFrame."""
        return pd.DataFrame(list(self.logbook), columns=self.logbook.header)

    def save_population(self, path):
        """
        Save the latest evaluated generation with its fitness, or the pending
        genomes of the next generation when nothing has been evaluated since.
        """
        if self.population is not None and self.population.fitness \
                and self.population.generation == self.generation - 1:
            save_population(path, self.population.generation,
                            self.population.genomes, self.population.fitness)
        else:
            save_population(path, self.generation, self._pending_genomes)

    def load_population(self, path):
        """Load genomes from disk; they are used at the next spawn."""
        record = load_population(path)
        self.inject_genomes(record.genomes)
        self.generation = record.generation
        return record

    def get_state(self):
        """
        Get current simulation state for visualization or analysis.

        Returns:
            Dict containing simulation state
        """
        return {
            "generation": self.generation,
            "world": {
                "size": self.world.world_size,
                "food": self.world.food.tolist(),
            },
            "population": self.population.get_state() if self.population else None,
            "last_stats": self.last_stats.as_dict() if self.last_stats else None,
        }
