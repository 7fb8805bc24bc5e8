"""
Population of agents for one generation and its lifecycle.
Agents stay in spawn order for the whole generation; dead agents keep their
slot so their fitness can be collected at the end.
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np
from deap import tools
from scipy.spatial.distance import pdist

from agents.agent import Agent
from agents.fitness import make_fitness_rule
from agents.genome import NetworkGenome
from config import CONFIG
from errors import LifecycleError


class LifecycleState(Enum):
    SPAWNING = "spawning"
    SIMULATING = "simulating"
    EVALUATED = "evaluated"
    EVOLVING = "evolving"


_TRANSITIONS = {
    LifecycleState.SPAWNING: {LifecycleState.SIMULATING},
    LifecycleState.SIMULATING: {LifecycleState.EVALUATED},
    LifecycleState.EVALUATED: {LifecycleState.EVOLVING},
    LifecycleState.EVOLVING: set(),
}


@dataclass(frozen=True)
class PopulationStats:
    generation: int
    best: float
    mean: float
    worst: float
    diversity: float
    survivors: int

    def as_dict(self):
        return asdict(self)


def genome_diversity(genomes: Sequence[NetworkGenome]) -> float:
    """Mean pairwise Euclidean distance between flattened genomes."""
    if len(genomes) < 2:
        return 0.0
    matrix = np.stack([genome.flat() for genome in genomes])
    return float(np.mean(pdist(matrix)))


def _fitness_statistics():
    stats = tools.Statistics(key=lambda fitness: fitness)
    stats.register("best", np.max)
    stats.register("mean", np.mean)
    stats.register("worst", np.min)
    return stats


class Population:
    """Ordered agents of one generation plus generation-level statistics."""

    def __init__(self, agents: Sequence[Agent], generation=0):
        self.agents: List[Agent] = list(agents)
        self.generation = generation
        self.state = LifecycleState.SPAWNING
        self.fitness: List[float] = []
        self.stats = None
        self.ticks = 0

        # Dense list of live agent indices, in spawn order
        self.active = [i for i, agent in enumerate(self.agents) if agent.alive]

    @classmethod
    def spawn(cls, genomes: Sequence[NetworkGenome], rng, config=None, generation=0):
        """
        Instantiate one agent per genome at a random position and heading.

        Args:
            genomes: Ordered genomes of this generation
            rng: numpy Generator for placement
            config: Configuration dictionary (optional)
            generation: Generation index
        """
        config = config or CONFIG
        width, height = config["world_size"]
        fitness_rule = make_fitness_rule(config)

        agents = []
        for i, genome in enumerate(genomes):
            position = (rng.uniform(0, width), rng.uniform(0, height))
            heading = rng.uniform(0, 2 * math.pi)
            agents.append(Agent(i, genome, position, heading, config, fitness_rule))

        return cls(agents, generation)

    def _transition(self, target: LifecycleState):
        if target not in _TRANSITIONS[self.state]:
            raise LifecycleError(
                f"cannot move generation {self.generation} from {self.state.value} to {target.value}"
            )
        self.state = target

    def begin_simulation(self):
        self._transition(LifecycleState.SIMULATING)

    def begin_evolution(self):
        self._transition(LifecycleState.EVOLVING)

    def refresh_active(self):
        """Drop agents that died since the last refresh from the active list."""
        self.active = [i for i in self.active if self.agents[i].alive]
        return self.active

    def live_agents(self) -> List[Agent]:
        return [self.agents[i] for i in self.active]

    @property
    def all_dead(self) -> bool:
        return not self.active

    @property
    def genomes(self) -> List[NetworkGenome]:
        return [agent.genome for agent in self.agents]

    def evaluate(self, evaluator) -> PopulationStats:
        """
        Score every agent and compute generation statistics.

        Args:
            evaluator: FitnessEvaluator

        Returns:
            PopulationStats for this generation
        """
        self._transition(LifecycleState.EVALUATED)
        self.fitness = evaluator.evaluate_all(self.agents)

        record = _fitness_statistics().compile(self.fitness)
        self.stats = PopulationStats(
            generation=self.generation,
            best=float(record["best"]),
            mean=float(record["mean"]),
            worst=float(record["worst"]),
            diversity=genome_diversity(self.genomes),
            survivors=sum(1 for agent in self.agents if agent.alive),
        )
        return self.stats

    def evaluated_genomes(self) -> List[Tuple[NetworkGenome, float]]:
        """Ordered (genome, fitness) pairs; only available after evaluation."""
        if self.state not in (LifecycleState.EVALUATED, LifecycleState.EVOLVING):
            raise LifecycleError("population has not been evaluated yet")
        return list(zip(self.genomes, self.fitness))

    def get_state(self):
        """Read-only snapshot for display layers."""
        return {
            "generation": self.generation,
            "state": self.state.value,
            "ticks": self.ticks,
            "alive": len(self.active),
            "agents": [agent.get_state() for agent in self.agents],
            "stats": self.stats.as_dict() if self.stats else None,
        }

    def __len__(self):
        return len(self.agents)

    def __iter__(self):
        return iter(self.agents)
