"""
Agent package for neural network brains, genomes, and evolution.
"""

from agents.agent import Agent, TickOutcome
from agents.brain import NeuralNetwork, batch_predict
from agents.evolution import EvolutionEngine
from agents.fitness import FitnessEvaluator, make_fitness_rule
from agents.genome import Activation, LayerSpec, NetworkGenome

__all__ = [
    'Activation',
    'Agent',
    'EvolutionEngine',
    'FitnessEvaluator',
    'LayerSpec',
    'NetworkGenome',
    'NeuralNetwork',
    'TickOutcome',
    'batch_predict',
    'make_fitness_rule'
]
