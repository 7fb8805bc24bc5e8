"""
Configuration settings for the neuroevolution simulator.
Centralized to make it easy to adjust parameters.
"""

import copy
import json
import math
import multiprocessing as mp
from pathlib import Path

from errors import ConfigError

# Global Configuration
CONFIG = {
    # Simulation parameters
    "world_size": (25, 25),
    "seed": 42,
    "tick_budget": 300,
    "generations": 50,

    # Agent parameters
    "max_age": 300,
    "max_energy": 100.0,
    "initial_energy": 50.0,
    "energy_decay": 0.25,
    "move_energy_cost": 0.1,
    "max_speed": 0.5,
    "max_turn": 0.5,  # Radians per tick
    "bite_size": 1.0,
    "food_energy": 5.0,

    # Sensor parameters
    "sensor_count": 8,
    "actuator_count": 3,
    "sensor_range": 2.0,
    "sensor_fan": math.pi / 2,
    "sensor_noise": 0.0,

    # Food parameters
    "max_food_per_tile": 5.0,
    "food_regrow_rate": 0.02,
    "terrain_smoothing": 2.0,

    # Neural network parameters
    "hidden_sizes": [8],

    # Evolutionary parameters
    "population_size": 50,
    "elitism_count": 2,
    "mutation_rate": 0.05,
    "mutation_magnitude": 0.2,
    "crossover_rate": 0.7,
    "selection": "tournament",
    "tournament_size": 3,

    # Fitness parameters
    "fitness_rule": "composite",
    "fitness_weights": {
        "survival": 1.0,
        "distance": 0.5,
        "food": 2.0,
    },

    # Technical parameters
    "n_threads": 1,
}

# Detailed neural network architecture
NN_CONFIG = {
    "hidden_activation": "tanh",
    "output_activation": "tanh",
    "weight_init_range": 0.5,
}

SELECTION_METHODS = ("roulette", "tournament")
FITNESS_RULES = ("survival", "distance", "food", "composite")
ACTIVATION_NAMES = ("identity", "sigmoid", "tanh", "relu")

# Energy, age and food under the agent come before the whiskers
BASE_SENSOR_COUNT = 3
MIN_ACTUATOR_COUNT = 3

MAX_THREADS = mp.cpu_count()


def _require(condition, message):
    if not condition:
        raise ConfigError(message)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config, nn_config=None):
    """
    Validate a configuration dictionary.

    Args:
        config: Simulation configuration
        nn_config: Network configuration (defaults to NN_CONFIG)

    Raises:
        ConfigError: On the first invalid value found
    """
    nn_config = nn_config or NN_CONFIG

    missing = sorted(set(CONFIG) - set(config))
    _require(not missing, f"Missing configuration keys: {', '.join(missing)}")

    for key in ("population_size", "elitism_count", "tick_budget", "generations", "max_age",
                "sensor_count", "actuator_count", "tournament_size", "n_threads"):
        value = config[key]
        _require(isinstance(value, int) and not isinstance(value, bool),
                 f"{key} must be an integer, got {value!r}")

    _require(config["population_size"] > 0, "population_size must be positive")
    _require(0 <= config["elitism_count"] <= config["population_size"],
             "elitism_count must be between 0 and population_size")

    for key in ("mutation_rate", "crossover_rate"):
        value = config[key]
        _require(_is_number(value) and 0.0 <= value <= 1.0, f"{key} must be within [0, 1]")

    for key in ("mutation_magnitude", "energy_decay", "move_energy_cost", "max_speed",
                "max_turn", "bite_size", "food_energy", "sensor_range", "sensor_fan",
                "sensor_noise", "max_food_per_tile", "food_regrow_rate", "terrain_smoothing"):
        value = config[key]
        _require(_is_number(value) and value >= 0 and math.isfinite(value),
                 f"{key} must be a finite non-negative number")

    _require(config["selection"] in SELECTION_METHODS,
             f"selection must be one of {SELECTION_METHODS}, got {config['selection']!r}")
    _require(config["tournament_size"] >= 1, "tournament_size must be at least 1")
    _require(config["tick_budget"] > 0, "tick_budget must be positive")
    _require(config["generations"] >= 0, "generations must not be negative")
    _require(config["max_age"] > 0, "max_age must be positive")
    _require(config["n_threads"] >= 1, "n_threads must be at least 1")

    _require(_is_number(config["max_energy"]) and config["max_energy"] > 0,
             "max_energy must be positive")
    _require(_is_number(config["initial_energy"])
             and 0 < config["initial_energy"] <= config["max_energy"],
             "initial_energy must be within (0, max_energy]")

    _require(config["sensor_count"] >= BASE_SENSOR_COUNT,
             f"sensor_count must be at least {BASE_SENSOR_COUNT}")
    _require(config["actuator_count"] >= MIN_ACTUATOR_COUNT,
             f"actuator_count must be at least {MIN_ACTUATOR_COUNT}")

    hidden = config["hidden_sizes"]
    _require(isinstance(hidden, (list, tuple)), "hidden_sizes must be a list")
    _require(all(isinstance(size, int) and size >= 1 for size in hidden),
             "hidden_sizes entries must be positive integers")

    world_size = config["world_size"]
    _require(isinstance(world_size, (list, tuple)) and len(world_size) == 2,
             "world_size must be a (width, height) pair")
    _require(all(isinstance(v, int) and v >= 1 for v in world_size),
             "world_size dimensions must be positive integers")

    _require(isinstance(config["seed"], int), "seed must be an integer")

    _require(config["fitness_rule"] in FITNESS_RULES,
             f"fitness_rule must be one of {FITNESS_RULES}, got {config['fitness_rule']!r}")
    weights = config["fitness_weights"]
    _require(isinstance(weights, dict), "fitness_weights must be a mapping")
    unknown = set(weights) - {"survival", "distance", "food"}
    _require(not unknown, f"Unknown fitness weights: {', '.join(sorted(unknown))}")
    _require(all(_is_number(v) for v in weights.values()), "fitness_weights must be numbers")

    for key in ("hidden_activation", "output_activation"):
        _require(nn_config.get(key) in ACTIVATION_NAMES,
                 f"{key} must be one of {ACTIVATION_NAMES}")
    init_range = nn_config.get("weight_init_range")
    _require(_is_number(init_range) and init_range >= 0,
             "weight_init_range must be a non-negative number")


def load_config(path=None, **overrides):
    """
    Build a validated configuration from the defaults.

    Args:
        path: Optional JSON file whose keys override the defaults
        **overrides: Keyword overrides applied after the file

    Returns:
        New configuration dictionary
    """
    config = copy.deepcopy(CONFIG)
    values = {}

    if path is not None:
        try:
            loaded = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read configuration from {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"Configuration file {path} must contain an object")
        values.update(loaded)

    values.update(overrides)

    unknown = sorted(set(values) - set(CONFIG))
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    config.update(values)
    if isinstance(config["world_size"], list):
        config["world_size"] = tuple(config["world_size"])

    validate_config(config)
    return config


def layer_sizes(config=None):
    """Full layer size list (sensors, hidden layers, actuators)."""
    config = config or CONFIG
    return [config["sensor_count"], *config["hidden_sizes"], config["actuator_count"]]


def layer_activations(config=None, nn_config=None):
    """Activation name for every layer after the input."""
    config = config or CONFIG
    nn_config = nn_config or NN_CONFIG
    hidden = [nn_config["hidden_activation"]] * len(config["hidden_sizes"])
    return hidden + [nn_config["output_activation"]]
