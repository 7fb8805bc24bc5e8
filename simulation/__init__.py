"""
Simulation package for populations, tick scheduling, and the generation loop.
"""

from simulation.population import LifecycleState, Population, PopulationStats
from simulation.scheduler import SimulationScheduler
from simulation.simulation import Simulation

__all__ = [
    'LifecycleState',
    'Population',
    'PopulationStats',
    'Simulation',
    'SimulationScheduler'
]
