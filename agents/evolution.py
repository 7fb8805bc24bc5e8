"""
Evolutionary algorithm for agent brains.
Produces the genomes of the next generation from evaluated genomes through
elitism, parent selection, uniform crossover and Gaussian mutation.
"""

from typing import List, Sequence, Tuple

import numpy as np
from loguru import logger

from agents.genome import NetworkGenome, random_genomes
from config import CONFIG, NN_CONFIG, layer_activations, layer_sizes, validate_config


class EvolutionEngine:
    """
    Handles selection, crossover and mutation of network genomes.

    Every stochastic step draws from the generator passed in, never from a global one.
    """

    def __init__(self, config=None, rng=None, nn_config=None):
        """
        Initialize the evolution engine.

        Args:
            config: Configuration dictionary (validated here)
            rng: numpy Generator (defaults to one seeded from the config)
            nn_config: Network configuration (optional)
        """
        self.config = config or CONFIG
        self.nn_config = nn_config or NN_CONFIG
        validate_config(self.config, self.nn_config)

        self.rng = rng if rng is not None else np.random.default_rng(self.config["seed"])

        self.population_size = self.config["population_size"]
        self.elitism_count = self.config["elitism_count"]
        self.mutation_rate = self.config["mutation_rate"]
        self.mutation_magnitude = self.config["mutation_magnitude"]
        self.crossover_rate = self.config["crossover_rate"]
        self.selection = self.config["selection"]
        self.tournament_size = self.config["tournament_size"]

    def random_genomes(self, count=None) -> List[NetworkGenome]:
        """Create a random generation-0 genome list with the configured topology."""
        return random_genomes(
            self.population_size if count is None else count,
            layer_sizes(self.config),
            layer_activations(self.config, self.nn_config),
            self.rng,
            self.nn_config["weight_init_range"],
        )

    def evolve(self, evaluated: Sequence[Tuple[NetworkGenome, float]]) -> List[NetworkGenome]:
        """
        Produce the next generation.

        Args:
            evaluated: Ordered (genome, fitness) pairs of the current generation

        Returns:
            Exactly ``population_size`` genomes; the elite come first, unchanged
        """
        if not evaluated:
            raise ValueError("Cannot evolve an empty population")

        genomes = [genome for genome, _ in evaluated]
        fitness = np.array([float(f) for _, f in evaluated])

        # Sort descending by fitness, ties by original index
        order = sorted(range(len(genomes)), key=lambda i: (-fitness[i], i))
        ranked = [genomes[i] for i in order]
        ranked_fitness = fitness[order]

        elite_count = min(self.elitism_count, len(ranked), self.population_size)
        next_generation = ranked[:elite_count]

        can_cross = self.population_size >= 2 and len(ranked) >= 2
        crossovers = 0
        while len(next_generation) < self.population_size:
            first, second = self._select_parents(ranked_fitness)
            if can_cross and self.rng.random() < self.crossover_rate:
                child = ranked[first].crossover(ranked[second], self.rng)
                crossovers += 1
            else:
                child = ranked[first]
            child = child.mutate(self.mutation_rate, self.mutation_magnitude, self.rng)
            next_generation.append(child)

        logger.debug(
            "Evolved {} genomes: {} elite, {} crossovers, best parent fitness {:.3f}",
            len(next_generation), elite_count, crossovers, ranked_fitness[0],
        )
        return next_generation

    def _select_parents(self, ranked_fitness) -> Tuple[int, int]:
        if self.selection == "roulette":
            return self.roulette_select(ranked_fitness), self.roulette_select(ranked_fitness)
        return self.tournament_select(ranked_fitness), self.tournament_select(ranked_fitness)

    def roulette_select(self, fitness) -> int:
        """
        Fitness-proportional selection.

        Negative fitness counts as zero; a zero total falls back to uniform choice.
        """
        weights = np.clip(np.asarray(fitness, dtype=np.float64), 0.0, None)
        total = weights.sum()
        if not np.isfinite(total) or total <= 0:
            return int(self.rng.integers(len(weights)))
        return int(self.rng.choice(len(weights), p=weights / total))

    def tournament_select(self, ranked_fitness) -> int:
        """
        Best of ``tournament_size`` uniform draws with replacement.

        Indices refer to the fitness-ranked list, so the lowest index wins ties.
        """
        contestants = self.rng.integers(len(ranked_fitness), size=self.tournament_size)
        return int(contestants.min())
