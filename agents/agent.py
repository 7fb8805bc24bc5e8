"""
Agent implementation with neural network decision making.
Each agent senses the world, feeds its brain and turns the outputs into
movement and feeding, paying energy for living and moving.
"""

import math
from typing import NamedTuple, Optional

import numpy as np
from numba import njit

from agents.brain import NeuralNetwork
from agents.fitness import make_fitness_rule
from agents.genome import NetworkGenome
from config import BASE_SENSOR_COUNT, CONFIG


@njit
def distance(x1, y1, x2, y2):
    """Calculate Euclidean distance between positions."""
    return np.sqrt((x1 - x2) ** 2 + (y1 - y2) ** 2)


@njit
def normalize_position(x, y, width, height):
    """Normalize position to stay within world boundaries."""
    return (
        max(0.0, min(width - 1e-9, x)),
        max(0.0, min(height - 1e-9, y))
    )


def whisker_angles(count, fan):
    """Angles, relative to the heading, of ``count`` food whiskers spread over ``fan`` radians."""
    if count <= 0:
        return np.zeros(0)
    if count == 1:
        return np.zeros(1)
    return np.linspace(-fan / 2.0, fan / 2.0, count)


class TickOutcome(NamedTuple):
    """What an agent's action produced in one tick."""

    distance: float
    food_eaten: float


class Agent:
    """
    Neural-network driven agent.
    Dead agents stay in their population slot with ``alive = False`` and ignore ticks.
    """

    def __init__(self, agent_id, genome: NetworkGenome, position=None, heading=0.0,
                 config=None, fitness_rule=None):
        """
        Initialize agent from a genome.

        Args:
            agent_id: Index of the agent in its population
            genome: Brain genome; must match the configured sensor and actuator counts
            position: Initial (x, y) position (defaults to the world center)
            heading: Initial heading in radians
            config: Configuration dictionary (optional)
            fitness_rule: Per-tick fitness contribution callable (optional)
        """
        self.id = agent_id
        self.config = config or CONFIG

        # Shape problems surface here, never in the tick loop
        self.brain = NeuralNetwork(
            genome,
            input_size=self.config["sensor_count"],
            output_size=self.config["actuator_count"],
        )
        self.fitness_rule = fitness_rule or make_fitness_rule(self.config)

        width, height = self.config["world_size"]
        if position is None:
            position = (width / 2.0, height / 2.0)
        self.position = normalize_position(float(position[0]), float(position[1]),
                                           float(width), float(height))
        self.heading = float(heading)

        self.energy = float(self.config["initial_energy"])
        self.age = 0
        self.alive = True

        # Fitness accumulator and the raw signals behind it
        self.fitness = 0.0
        self.distance_traveled = 0.0
        self.food_eaten = 0.0
        self.ticks_alive = 0

        self._whiskers = whisker_angles(
            self.config["sensor_count"] - BASE_SENSOR_COUNT,
            self.config["sensor_fan"],
        )

    @property
    def genome(self) -> NetworkGenome:
        return self.brain.genome

    def sense(self, view, noise=None) -> np.ndarray:
        """
        Gather perceptions about the environment.

        Args:
            view: World or WorldSnapshot offering ``food_at(position)``
            noise: Optional additive noise vector, one value per sensor

        Returns:
            Numpy array of perceptions
        """
        max_food = self.config["max_food_per_tile"] or 1.0
        perceptions = np.empty(self.config["sensor_count"])

        # Self perceptions
        perceptions[0] = self.energy / self.config["max_energy"]
        perceptions[1] = self.age / self.config["max_age"]
        perceptions[2] = view.food_at(self.position) / max_food

        # Food whiskers fanned around the heading
        reach = self.config["sensor_range"]
        x, y = self.position
        for i, offset in enumerate(self._whiskers):
            angle = self.heading + offset
            tip = (x + reach * math.cos(angle), y + reach * math.sin(angle))
            perceptions[BASE_SENSOR_COUNT + i] = view.food_at(tip) / max_food

        if noise is not None:
            perceptions += noise

        return perceptions

    def think(self, perceptions) -> np.ndarray:
        return self.brain.forward(perceptions)

    def act(self, motor_output, world) -> TickOutcome:
        """
        Turn motor outputs into movement and feeding.

        Outputs: 0 = turn, 1 = thrust, 2 = eat (> 0). Extra outputs are ignored.

        Args:
            motor_output: Network output vector
            world: World whose food is consumed

        Returns:
            TickOutcome with the distance moved and food eaten
        """
        turn = min(1.0, max(-1.0, float(motor_output[0])))
        thrust = min(1.0, max(0.0, float(motor_output[1])))
        wants_food = float(motor_output[2]) > 0.0

        self.heading = (self.heading + turn * self.config["max_turn"]) % (2 * math.pi)

        # Move
        speed = thrust * self.config["max_speed"]
        old_x, old_y = self.position
        width, height = self.config["world_size"]
        self.position = normalize_position(
            old_x + speed * math.cos(self.heading),
            old_y + speed * math.sin(self.heading),
            float(width),
            float(height),
        )
        moved = float(distance(old_x, old_y, self.position[0], self.position[1]))
        self.energy -= self.config["move_energy_cost"] * moved

        # Eat
        eaten = 0.0
        if wants_food:
            eaten = world.consume(self.position, self.config["bite_size"])
            self.energy = min(self.config["max_energy"],
                              self.energy + eaten * self.config["food_energy"])

        return TickOutcome(moved, eaten)

    def apply_environment(self, outcome: TickOutcome):
        """Pay the cost of living, accumulate fitness and check for death."""
        self.energy -= self.config["energy_decay"]
        self.age += 1

        self.distance_traveled += outcome.distance
        self.food_eaten += outcome.food_eaten
        self.ticks_alive += 1
        self.fitness += self.fitness_rule(self, outcome)

        # Death conditions
        if self.energy <= 0 or self.age >= self.config["max_age"]:
            self.alive = False

    def tick(self, world, rng: Optional[np.random.Generator] = None) -> bool:
        """
        Advance the agent by one tick: sense, think, act, then pay costs.

        Args:
            world: World to sense and feed from
            rng: Generator for sensor noise (required when sensor_noise > 0)

        Returns:
            Whether the agent is still alive
        """
        if not self.alive:
            return False

        noise = None
        if rng is not None and self.config["sensor_noise"] > 0:
            noise = rng.normal(0.0, self.config["sensor_noise"], self.config["sensor_count"])

        # Single agent: sense the live world
        perceptions = self.sense(world, noise)
        outcome = self.act(self.think(perceptions), world)
        self.apply_environment(outcome)

        return self.alive

    def get_state(self):
        """Plain-dict view for display layers."""
        return {
            "id": self.id,
            "position": self.position,
            "heading": self.heading,
            "energy": self.energy,
            "age": self.age,
            "alive": self.alive,
            "fitness": self.fitness,
        }

    def __repr__(self):
        status = "alive" if self.alive else "dead"
        return f"Agent(id={self.id}, {status}, energy={self.energy:.2f}, fitness={self.fitness:.2f})"
