import json

import pytest

from config import CONFIG, NN_CONFIG, layer_activations, layer_sizes, load_config, validate_config
from errors import ConfigError


def test_defaults_are_valid():
    validate_config(CONFIG, NN_CONFIG)


def test_load_config_copies_defaults():
    config = load_config(population_size=10)

    config["fitness_weights"]["food"] = 99.0

    assert config["population_size"] == 10
    assert CONFIG["fitness_weights"]["food"] != 99.0


@pytest.mark.parametrize("overrides", [
    {"mutation_rate": -0.1},
    {"mutation_rate": 1.5},
    {"crossover_rate": 2.0},
    {"mutation_magnitude": -1.0},
    {"population_size": 0},
    {"population_size": 4, "elitism_count": 5},
    {"elitism_count": -1},
    {"elitism_count": "2"},
    {"elitism_count": 1.5},
    {"elitism_count": True},
    {"selection": "lottery"},
    {"tournament_size": 0},
    {"tick_budget": 0},
    {"sensor_count": 2},
    {"actuator_count": 2},
    {"hidden_sizes": [4, 0]},
    {"world_size": (0, 5)},
    {"initial_energy": 500.0},
    {"fitness_rule": "charisma"},
    {"fitness_weights": {"charisma": 1.0}},
    {"n_threads": 0},
    {"population_size": 2.5},
])
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ConfigError):
        load_config(**overrides)


def test_unknown_keys_are_rejected():
    with pytest.raises(ConfigError):
        load_config(mutation_chance=0.1)


def test_load_config_from_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"population_size": 12, "world_size": [6, 7], "selection": "roulette"}))

    config = load_config(path, seed=9)

    assert config["population_size"] == 12
    assert config["world_size"] == (6, 7)
    assert config["selection"] == "roulette"
    assert config["seed"] == 9


def test_broken_json_is_a_config_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2")

    with pytest.raises(ConfigError):
        load_config(path)

    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_keys_are_rejected():
    config = dict(CONFIG)
    del config["tick_budget"]

    with pytest.raises(ConfigError):
        validate_config(config)


def test_invalid_activation_is_rejected():
    with pytest.raises(ConfigError):
        validate_config(CONFIG, dict(NN_CONFIG, hidden_activation="softmax"))


def test_layer_helpers():
    config = load_config(sensor_count=6, hidden_sizes=[5, 4], actuator_count=3)

    assert layer_sizes(config) == [6, 5, 4, 3]
    assert layer_activations(config, NN_CONFIG) == ["tanh", "tanh", "tanh"]
