"""
Genome persistence format.
Genomes and whole populations are stored as versioned JSON records that
round-trip exactly.
"""

import json
import math
from pathlib import Path
from typing import List, NamedTuple, Optional

import numpy as np
from loguru import logger

from agents.genome import Activation, LayerSpec, NetworkGenome
from errors import SerializationError, ShapeError

SCHEMA_VERSION = 1


class PopulationRecord(NamedTuple):
    """Decoded population wrapper."""

    generation: int
    genomes: List[NetworkGenome]
    fitness: List[Optional[float]]


def _floats(values, what):
    out = []
    for value in values:
        value = float(value)
        if not math.isfinite(value):
            raise SerializationError(f"{what} contains a non-finite value")
        out.append(value)
    return out


def encode_genome(genome: NetworkGenome) -> dict:
    """Encode a genome as a JSON-compatible dictionary."""
    return {
        "schema_version": SCHEMA_VERSION,
        "layers": [
            {
                "input_count": layer.input_count,
                "output_count": layer.output_count,
                "weights": _floats(layer.weights.ravel(), "weights"),
                "bias": _floats(layer.bias, "bias"),
                "activation": layer.activation.value,
            }
            for layer in genome.layers
        ],
    }


def _check_version(data):
    if not isinstance(data, dict):
        raise SerializationError("record must be a JSON object")
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise SerializationError(
            f"unsupported schema version {version!r}, expected {SCHEMA_VERSION}"
        )


def _number_list(values, what):
    if not isinstance(values, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        raise SerializationError(f"{what} must be a list of numbers")
    return _floats(values, what)


def decode_genome(data) -> NetworkGenome:
    """
    Decode a genome record.

    Raises:
        SerializationError: On corrupt, malformed or version-mismatched data
    """
    _check_version(data)
    layers_data = data.get("layers")
    if not isinstance(layers_data, list) or not layers_data:
        raise SerializationError("genome record needs a non-empty 'layers' list")

    layers = []
    for i, layer in enumerate(layers_data):
        if not isinstance(layer, dict):
            raise SerializationError(f"layer {i} must be an object")
        try:
            n_in = layer["input_count"]
            n_out = layer["output_count"]
            weights = _number_list(layer["weights"], f"layer {i} weights")
            bias = _number_list(layer["bias"], f"layer {i} bias")
            activation = layer["activation"]
        except KeyError as e:
            raise SerializationError(f"layer {i} is missing {e.args[0]!r}") from e

        if not (isinstance(n_in, int) and isinstance(n_out, int)) or isinstance(n_in, bool) \
                or isinstance(n_out, bool):
            raise SerializationError(f"layer {i} counts must be integers")
        if n_in < 1 or n_out < 1 or len(weights) != n_in * n_out:
            raise SerializationError(
                f"layer {i} declares {n_out}x{n_in} weights but stores {len(weights)}"
            )
        if activation not in {kind.value for kind in Activation}:
            raise SerializationError(f"layer {i} has unknown activation {activation!r}")

        try:
            layers.append(LayerSpec(
                n_in, n_out,
                np.array(weights, dtype=np.float64).reshape(n_out, n_in),
                bias,
                activation,
            ))
        except ShapeError as e:
            raise SerializationError(f"layer {i} is inconsistent: {e}") from e

    try:
        return NetworkGenome(layers)
    except ShapeError as e:
        raise SerializationError(f"genome layers do not chain: {e}") from e


def encode_population(generation, genomes, fitness=None) -> dict:
    """
    Encode a population wrapper.

    Args:
        generation: Generation index
        genomes: Ordered genomes
        fitness: Last-known fitness per genome, None where unknown
    """
    if fitness is None:
        fitness = [None] * len(genomes)
    if len(fitness) != len(genomes):
        raise SerializationError("fitness list must match the genome list")

    return {
        "schema_version": SCHEMA_VERSION,
        "generation": int(generation),
        "genomes": [encode_genome(genome) for genome in genomes],
        "fitness": [None if f is None else _floats([f], "fitness")[0] for f in fitness],
    }


def decode_population(data) -> PopulationRecord:
    """Decode a population wrapper; raises SerializationError on bad data."""
    _check_version(data)
    generation = data.get("generation")
    genomes = data.get("genomes")
    fitness = data.get("fitness")

    if not isinstance(generation, int) or isinstance(generation, bool) or generation < 0:
        raise SerializationError("generation must be a non-negative integer")
    if not isinstance(genomes, list) or not isinstance(fitness, list):
        raise SerializationError("population record needs 'genomes' and 'fitness' lists")
    if len(genomes) != len(fitness):
        raise SerializationError("population record has mismatched genome and fitness counts")

    decoded = [decode_genome(genome) for genome in genomes]
    if any(not genome.is_compatible(decoded[0]) for genome in decoded[1:]):
        raise SerializationError("population genomes do not share one topology")

    values = []
    for f in fitness:
        if f is None:
            values.append(None)
        elif isinstance(f, (int, float)) and not isinstance(f, bool):
            values.append(_floats([f], "fitness")[0])
        else:
            raise SerializationError(f"invalid fitness value {f!r}")

    return PopulationRecord(generation, decoded, values)


def dumps(data) -> str:
    return json.dumps(data, allow_nan=False)


def loads(text):
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializationError(f"invalid JSON: {e}") from e


def save_population(path, generation, genomes, fitness=None):
    """Write a population record to ``path``."""
    path = Path(path)
    path.write_text(dumps(encode_population(generation, genomes, fitness)))
    logger.info("Saved {} genomes of generation {} to {}", len(genomes), generation, path)


def load_population(path) -> PopulationRecord:
    """Read a population record from ``path``."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise SerializationError(f"could not read {path}: {e}") from e

    record = decode_population(loads(text))
    logger.info("Loaded {} genomes of generation {} from {}",
                len(record.genomes), record.generation, path)
    return record
