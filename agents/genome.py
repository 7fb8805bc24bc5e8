"""
Network genomes: the immutable, serializable description of an agent brain.
Evolution operators always return new genomes so lineage stays traceable.
"""

from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from errors import ShapeError


class Activation(str, Enum):
    """Activation kinds supported by a layer."""

    IDENTITY = "identity"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"


def _frozen(values, shape, what):
    array = np.array(values, dtype=np.float64)
    if array.shape != shape:
        raise ShapeError(f"{what} has shape {array.shape}, expected {shape}")
    array.setflags(write=False)
    return array


class LayerSpec:
    """
    One dense layer: ``activation(weights . x + bias)``.

    Weights have shape (output_count, input_count).
    """

    __slots__ = ("input_count", "output_count", "weights", "bias", "activation")

    def __init__(self, input_count, output_count, weights, bias, activation=Activation.TANH):
        if input_count < 1 or output_count < 1:
            raise ShapeError("each layer of a network must have at least one node")

        self.input_count = int(input_count)
        self.output_count = int(output_count)
        self.weights = _frozen(weights, (self.output_count, self.input_count), "weight matrix")
        self.bias = _frozen(bias, (self.output_count,), "bias vector")
        try:
            self.activation = Activation(activation)
        except ValueError:
            raise ShapeError(f"Unknown activation function: {activation}") from None

    def with_arrays(self, weights, bias):
        """Same layer shape and activation with new parameters."""
        return LayerSpec(self.input_count, self.output_count, weights, bias, self.activation)

    def __eq__(self, other):
        if not isinstance(other, LayerSpec):
            return NotImplemented
        return (
            self.input_count == other.input_count
            and self.output_count == other.output_count
            and self.activation == other.activation
            and self.weights.tobytes() == other.weights.tobytes()
            and self.bias.tobytes() == other.bias.tobytes()
        )

    __hash__ = None

    def __repr__(self):
        return (f"LayerSpec({self.input_count}->{self.output_count}, "
                f"activation={self.activation.value})")


class NetworkGenome:
    """Ordered sequence of layer specs forming a feed-forward network."""

    __slots__ = ("layers",)

    def __init__(self, layers: Sequence[LayerSpec]):
        layers = tuple(layers)
        if not layers:
            raise ShapeError("a genome needs at least one layer")

        for i, (current, following) in enumerate(zip(layers, layers[1:])):
            if current.output_count != following.input_count:
                raise ShapeError(
                    f"layer {i} outputs {current.output_count} values but layer {i + 1} "
                    f"expects {following.input_count}"
                )

        self.layers: Tuple[LayerSpec, ...] = layers

    @classmethod
    def random(cls, layer_sizes, activations, rng, weight_range=0.5):
        """
        Create a genome with uniformly random weights and biases.

        Args:
            layer_sizes: Node counts, first is the input size and last the output size
            activations: Activation per layer after the input (one per weight matrix)
            rng: numpy Generator used for every draw
            weight_range: Values are drawn from [-weight_range, weight_range]

        Returns:
            New genome
        """
        if len(layer_sizes) < 2:
            raise ShapeError("network must have at least an input layer and an output layer")
        if any(size < 1 for size in layer_sizes):
            raise ShapeError("each layer of a network must have at least one node")
        if len(activations) != len(layer_sizes) - 1:
            raise ShapeError(
                f"expected {len(layer_sizes) - 1} activations, got {len(activations)}"
            )

        layers = []
        for n_in, n_out, activation in zip(layer_sizes[:-1], layer_sizes[1:], activations):
            w = rng.uniform(-weight_range, weight_range, (n_out, n_in))
            b = rng.uniform(-weight_range, weight_range, (n_out,))
            layers.append(LayerSpec(n_in, n_out, w, b, activation))

        return cls(layers)

    @property
    def input_count(self) -> int:
        return self.layers[0].input_count

    @property
    def output_count(self) -> int:
        return self.layers[-1].output_count

    @property
    def layer_sizes(self) -> List[int]:
        return [self.input_count] + [layer.output_count for layer in self.layers]

    @property
    def activations(self) -> Tuple[Activation, ...]:
        return tuple(layer.activation for layer in self.layers)

    def is_compatible(self, other: "NetworkGenome") -> bool:
        """Whether both genomes share topology and activations."""
        return self.layer_sizes == other.layer_sizes and self.activations == other.activations

    def flat(self) -> np.ndarray:
        """All weights (row-major) then biases, layer by layer."""
        parts = []
        for layer in self.layers:
            parts.append(layer.weights.ravel())
            parts.append(layer.bias)
        return np.concatenate(parts)

    def mutate(self, mutation_rate, mutation_magnitude, rng) -> "NetworkGenome":
        """
        Add Gaussian noise to a random subset of weights and biases.

        Args:
            mutation_rate: Probability of mutating each weight and bias
            mutation_magnitude: Standard deviation of the noise
            rng: numpy Generator

        Returns:
            New genome with mutated parameters
        """
        new_layers = []
        for layer in self.layers:
            # Mutate weights
            mask_w = rng.random(layer.weights.shape) < mutation_rate
            noise_w = rng.normal(0.0, mutation_magnitude, layer.weights.shape)

            # Mutate biases
            mask_b = rng.random(layer.bias.shape) < mutation_rate
            noise_b = rng.normal(0.0, mutation_magnitude, layer.bias.shape)

            new_layers.append(layer.with_arrays(
                np.where(mask_w, layer.weights + noise_w, layer.weights),
                np.where(mask_b, layer.bias + noise_b, layer.bias),
            ))

        return NetworkGenome(new_layers)

    def crossover(self, other: "NetworkGenome", rng) -> "NetworkGenome":
        """
        Uniform crossover: every weight and bias comes from either parent with p = 0.5.

        Args:
            other: Second parent, must have the same topology
            rng: numpy Generator

        Returns:
            New child genome
        """
        if not isinstance(other, NetworkGenome):
            raise TypeError("Crossover partner must be a NetworkGenome")

        if not self.is_compatible(other):
            raise ShapeError("Genomes must have the same architecture for crossover")

        new_layers = []
        for a, b in zip(self.layers, other.layers):
            mask_w = rng.random(a.weights.shape) < 0.5
            mask_b = rng.random(a.bias.shape) < 0.5
            new_layers.append(a.with_arrays(
                np.where(mask_w, a.weights, b.weights),
                np.where(mask_b, a.bias, b.bias),
            ))

        return NetworkGenome(new_layers)

    def distance(self, other: "NetworkGenome") -> float:
        """Euclidean distance between flattened parameters."""
        if not self.is_compatible(other):
            raise ShapeError("Genomes must have the same architecture to compare")
        return float(np.linalg.norm(self.flat() - other.flat()))

    def __eq__(self, other):
        if not isinstance(other, NetworkGenome):
            return NotImplemented
        return self.layers == other.layers

    __hash__ = None

    def __len__(self):
        return len(self.layers)

    def __repr__(self):
        sizes = "-".join(str(size) for size in self.layer_sizes)
        return f"NetworkGenome({sizes})"


def random_genomes(count, layer_sizes, activations, rng, weight_range=0.5) -> List[NetworkGenome]:
    """Create ``count`` random genomes sharing one topology."""
    return [
        NetworkGenome.random(layer_sizes, activations, rng, weight_range)
        for _ in range(count)
    ]


def check_io(genome: NetworkGenome, input_size: Optional[int] = None,
             output_size: Optional[int] = None):
    """Raise ShapeError when a genome does not match the expected sensor/actuator sizes."""
    if input_size is not None and genome.input_count != input_size:
        raise ShapeError(f"genome takes {genome.input_count} inputs, expected {input_size}")
    if output_size is not None and genome.output_count != output_size:
        raise ShapeError(f"genome produces {genome.output_count} outputs, expected {output_size}")
