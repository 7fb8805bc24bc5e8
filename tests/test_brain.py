import numpy as np
import pytest
from pytest import approx

from agents.brain import NeuralNetwork, batch_predict
from agents.genome import LayerSpec, NetworkGenome
from errors import NumericInstabilityError, ShapeError


def _single_layer(weights, bias, activation):
    weights = np.asarray(weights, dtype=float)
    return NetworkGenome([
        LayerSpec(weights.shape[1], weights.shape[0], weights, bias, activation)
    ])


def test_identity_layer_doubles_input():
    network = NeuralNetwork(_single_layer([[2.0]], [0.0], "identity"))

    assert network.forward([3.0]).tolist() == [6.0]


def test_output_has_actuator_length_and_is_finite(rng):
    for sizes in ([4, 3], [6, 8, 5, 3], [1, 1]):
        activations = ["relu"] * (len(sizes) - 2) + ["tanh"]
        genome = NetworkGenome.random(sizes, activations, rng, 1.0)
        network = NeuralNetwork(genome, input_size=sizes[0], output_size=sizes[-1])

        for _ in range(10):
            output = network.forward(rng.uniform(-1, 1, sizes[0]))
            assert output.shape == (sizes[-1],)
            assert np.all(np.isfinite(output))


def test_forward_is_deterministic(rng):
    genome = NetworkGenome.random([5, 7, 2], ["sigmoid", "tanh"], rng)
    x = rng.uniform(-1, 1, 5)

    first = NeuralNetwork(genome).forward(x)
    second = NeuralNetwork(genome).forward(x)

    assert first.tobytes() == second.tobytes()


def test_activation_kinds():
    assert NeuralNetwork(_single_layer([[1.0]], [0.0], "sigmoid")).forward([0.0])[0] == approx(0.5)
    assert NeuralNetwork(_single_layer([[1.0]], [0.0], "relu")).forward([-2.0])[0] == 0.0
    assert NeuralNetwork(_single_layer([[1.0]], [0.0], "tanh")).forward([1.0])[0] == approx(np.tanh(1.0))


def test_layers_compose_in_order():
    genome = NetworkGenome([
        LayerSpec(2, 2, [[1.0, 0.0], [0.0, -1.0]], [0.0, 0.0], "relu"),
        LayerSpec(2, 1, [[1.0, 1.0]], [0.5], "identity"),
    ])

    # relu([3, -(-2)]) = [3, 2] -> 3 + 2 + 0.5
    assert NeuralNetwork(genome).forward([3.0, -2.0])[0] == approx(5.5)


def test_shape_mismatch_is_rejected_at_construction(rng):
    genome = NetworkGenome.random([4, 2], ["tanh"], rng)

    with pytest.raises(ShapeError):
        NeuralNetwork(genome, input_size=5)
    with pytest.raises(ShapeError):
        NeuralNetwork(genome, output_size=3)


def test_wrong_input_length_raises(rng):
    network = NeuralNetwork(NetworkGenome.random([4, 2], ["tanh"], rng))

    with pytest.raises(ShapeError):
        network.forward([1.0, 2.0])


def test_overflow_is_reported_not_clamped():
    network = NeuralNetwork(_single_layer([[1e308]], [0.0], "identity"))

    with pytest.raises(NumericInstabilityError):
        network.forward([10.0])


def test_batch_predict_matches_single_forward(rng):
    genomes = [NetworkGenome.random([3, 4, 2], ["relu", "tanh"], rng) for _ in range(5)]
    networks = [NeuralNetwork(genome) for genome in genomes]
    inputs = rng.uniform(-1, 1, (5, 3))

    batched = batch_predict(networks, inputs)

    assert batched.shape == (5, 2)
    for network, x, row in zip(networks, inputs, batched):
        assert row == approx(network.forward(x))


def test_batch_predict_rejects_mixed_topologies(rng):
    networks = [
        NeuralNetwork(NetworkGenome.random([3, 2], ["tanh"], rng)),
        NeuralNetwork(NetworkGenome.random([3, 4, 2], ["tanh", "tanh"], rng)),
    ]

    with pytest.raises(ShapeError):
        batch_predict(networks, np.zeros((2, 3)))
