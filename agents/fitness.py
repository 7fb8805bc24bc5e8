"""
Fitness scoring.
Contribution rules turn one tick's outcome into a fitness increment; the
evaluator reads the accumulated total at generation end.
"""

from typing import Callable, Dict

from config import CONFIG
from errors import ConfigError


def survival_contribution(agent, outcome) -> float:
    """+1 for every tick survived."""
    return 1.0


def distance_contribution(agent, outcome) -> float:
    """+distance moved this tick."""
    return outcome.distance


def food_contribution(agent, outcome) -> float:
    """+food consumed this tick."""
    return outcome.food_eaten


FITNESS_RULES: Dict[str, Callable] = {
    "survival": survival_contribution,
    "distance": distance_contribution,
    "food": food_contribution,
}


class CompositeFitness:
    """Weighted sum of the basic contribution rules."""

    def __init__(self, weights):
        self.weights = {name: float(weight) for name, weight in weights.items() if weight}
        for name in self.weights:
            if name not in FITNESS_RULES:
                raise ConfigError(f"Unknown fitness rule: {name}")

    def __call__(self, agent, outcome) -> float:
        return sum(
            weight * FITNESS_RULES[name](agent, outcome)
            for name, weight in self.weights.items()
        )


def make_fitness_rule(config=None) -> Callable:
    """
    Build the per-tick fitness contribution rule named in the configuration.

    Returns:
        Callable taking (agent, outcome) and returning a float
    """
    config = config or CONFIG
    name = config["fitness_rule"]
    if name == "composite":
        return CompositeFitness(config["fitness_weights"])
    try:
        return FITNESS_RULES[name]
    except KeyError:
        raise ConfigError(f"Unknown fitness rule: {name}") from None


class FitnessEvaluator:
    """Scores an agent's lifetime performance. Pure and deterministic."""

    def evaluate(self, agent) -> float:
        # Clamped so roulette weights stay well-defined
        return max(0.0, float(agent.fitness))

    def evaluate_all(self, agents):
        return [self.evaluate(agent) for agent in agents]
