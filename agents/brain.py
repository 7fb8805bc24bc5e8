"""
Neural networks for agent decision making, optimized with JAX.
Includes both individual network handling and batch processing.
"""

from functools import partial
from typing import Sequence

import numpy as np
import jax
import jax.numpy as jnp
from jax import jit, vmap

from agents.genome import Activation, NetworkGenome, check_io
from errors import NumericInstabilityError, ShapeError

# Genomes are float64; keep inference in the same precision
jax.config.update("jax_enable_x64", True)

_ACTIVATION_FUNCS = {
    Activation.IDENTITY: lambda x: x,
    Activation.SIGMOID: jax.nn.sigmoid,
    Activation.TANH: jnp.tanh,
    Activation.RELU: jax.nn.relu,
}


@partial(jit, static_argnums=0)
def _forward_impl(activations, params, x):
    """
    Implement forward pass through the network.

    Args:
        activations: Tuple of Activation kinds, one per layer (static)
        params: List of (W, b) tuples
        x: Input vector

    Returns:
        Output vector
    """
    for (W, b), kind in zip(params, activations):
        x = _ACTIVATION_FUNCS[kind](jnp.dot(W, x) + b)
    return x


@partial(jit, static_argnums=0)
def _batch_forward_impl(activations, stacked_params, xs):
    """Map the forward pass over stacked per-network parameters and inputs."""
    return vmap(lambda params, x: _forward_impl(activations, params, x))(stacked_params, xs)


def _check_finite(outputs):
    if not np.all(np.isfinite(outputs)):
        raise NumericInstabilityError("forward pass produced NaN or infinite values")
    return outputs


class NeuralNetwork:
    """Feed-forward network built from a genome. Stateless between calls."""

    def __init__(self, genome: NetworkGenome, input_size=None, output_size=None):
        """
        Build the runtime network.

        Args:
            genome: Genome describing topology and weights
            input_size: Expected sensor vector length (checked here, not per call)
            output_size: Expected actuator vector length
        """
        check_io(genome, input_size, output_size)

        self.genome = genome
        self.activations = genome.activations
        self.input_size = genome.input_count
        self.output_size = genome.output_count

        # Converted once so the per-tick path only runs the compiled function
        self.params = [(jnp.asarray(layer.weights), jnp.asarray(layer.bias))
                       for layer in genome.layers]

    def forward(self, x) -> np.ndarray:
        """
        Run the network on a single input vector.

        Args:
            x: Input vector of length ``input_size``

        Returns:
            Output vector of length ``output_size``
        """
        x = np.asarray(x, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise ShapeError(f"network takes {self.input_size} inputs, got shape {x.shape}")

        outputs = np.asarray(_forward_impl(self.activations, self.params, x))
        return _check_finite(outputs)

    predict = forward

    def __repr__(self):
        return f"NeuralNetwork({self.genome!r})"


def batch_predict(networks: Sequence[NeuralNetwork], inputs) -> np.ndarray:
    """
    Perform batch prediction for multiple networks and inputs.

    All networks must share one topology; row ``i`` of ``inputs`` feeds network ``i``.

    Args:
        networks: List of NeuralNetwork objects
        inputs: Matrix of shape (len(networks), input_size)

    Returns:
        Matrix of shape (len(networks), output_size)
    """
    if not networks:
        return np.zeros((0, 0))

    first = networks[0]
    inputs = np.asarray(inputs, dtype=np.float64)
    if inputs.shape != (len(networks), first.input_size):
        raise ShapeError(
            f"expected inputs of shape {(len(networks), first.input_size)}, got {inputs.shape}"
        )

    for network in networks[1:]:
        if not network.genome.is_compatible(first.genome):
            raise ShapeError("batch prediction needs networks with identical topology")

    if len(networks) == 1:
        return first.forward(inputs[0])[np.newaxis, :]

    stacked = [
        (
            jnp.stack([network.params[i][0] for network in networks]),
            jnp.stack([network.params[i][1] for network in networks]),
        )
        for i in range(len(first.params))
    ]

    outputs = np.asarray(_batch_forward_impl(first.activations, stacked, jnp.asarray(inputs)))
    return _check_finite(outputs)
