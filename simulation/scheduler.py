"""
Per-tick scheduler that drives every live agent of a population.

Each tick runs in three phases:
    1. collect: live agents sense a read-only snapshot of the world
    2. update: one batched forward pass over all live brains
    3. perform: agents act in population order, then the world regrows

Food is only written in the perform phase, one agent at a time in spawn
order, so an earlier agent in the population wins a contested tile.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from loguru import logger

from agents.brain import batch_predict
from config import CONFIG, MAX_THREADS
from errors import LifecycleError
from simulation.population import LifecycleState


class SimulationScheduler:
    """Advances populations tick by tick. Aborts only between ticks."""

    def __init__(self, config=None, rng=None):
        """
        Initialize the scheduler.

        Args:
            config: Configuration dictionary (optional)
            rng: numpy Generator for sensor noise
        """
        self.config = config or CONFIG
        self.rng = rng if rng is not None else np.random.default_rng(self.config["seed"])
        self.n_threads = self.config["n_threads"]
        self._abort = threading.Event()
        self._pool = None

    def request_abort(self):
        """Stop at the next tick boundary."""
        self._abort.set()

    def clear_abort(self):
        self._abort.clear()

    def close(self):
        """Shut down the sensing thread pool, if one was started."""
        if self._pool is not None:
            self._pool.shutdown()
            self._pool = None

    @property
    def abort_requested(self) -> bool:
        return self._abort.is_set()

    def _collect(self, agents, view):
        noise = [None] * len(agents)
        if self.config["sensor_noise"] > 0:
            # Drawn here, in population order, so threading cannot change the stream
            drawn = self.rng.normal(0.0, self.config["sensor_noise"],
                                    (len(agents), self.config["sensor_count"]))
            noise = list(drawn)

        if self.n_threads > 1 and len(agents) > 1:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=min(self.n_threads, MAX_THREADS))
            rows = list(self._pool.map(lambda pair: pair[0].sense(view, pair[1]),
                                       zip(agents, noise)))
        else:
            rows = [agent.sense(view, n) for agent, n in zip(agents, noise)]

        return np.stack(rows)

    def step_tick(self, population, world) -> int:
        """
        Advance every live agent by one tick.

        Args:
            population: Population being simulated
            world: World shared by its agents

        Returns:
            Number of agents still alive after the tick
        """
        agents = population.live_agents()
        if not agents:
            return 0

        view = world.snapshot()
        perceptions = self._collect(agents, view)
        outputs = batch_predict([agent.brain for agent in agents], perceptions)

        for agent, motor_output in zip(agents, outputs):
            outcome = agent.act(motor_output, world)
            agent.apply_environment(outcome)

        world.regrow()
        population.ticks += 1
        return len(population.refresh_active())

    def step_generation(self, population, world, tick_budget=None):
        """
        Simulate a generation until the tick budget runs out or every agent is dead.

        Args:
            population: Population in the simulating state
            world: World shared by its agents
            tick_budget: Maximum number of ticks (defaults to config)

        Returns:
            The same population, updated in place
        """
        if tick_budget is None:
            tick_budget = self.config["tick_budget"]
        if population.state is LifecycleState.SPAWNING:
            population.begin_simulation()
        elif population.state is not LifecycleState.SIMULATING:
            raise LifecycleError(f"cannot simulate a population in state {population.state.value}")

        while population.ticks < tick_budget and not population.all_dead:
            if self.abort_requested:
                logger.warning("Generation {} aborted after {} ticks",
                               population.generation, population.ticks)
                break
            self.step_tick(population, world)

        logger.debug("Generation {} simulated for {} ticks, {} alive",
                     population.generation, population.ticks, len(population.active))
        return population
