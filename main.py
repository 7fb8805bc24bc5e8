#!/usr/bin/env python3
"""
Main entry point for the neuroevolution simulator.
Handles command-line arguments, initialization, and running the simulation.
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

from config import CONFIG, load_config
from errors import EvoSimError
from simulation.simulation import Simulation


def build_parser():
    parser = argparse.ArgumentParser(description="Neuroevolution Simulator")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON file overriding the default configuration"
    )

    # Basic simulation parameters
    parser.add_argument(
        "--generations",
        type=int,
        default=None,
        help=f"Number of generations to evolve (default {CONFIG['generations']})"
    )

    parser.add_argument(
        "--population",
        type=int,
        default=None,
        help=f"Population size (default {CONFIG['population_size']})"
    )

    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help=f"Tick budget per generation (default {CONFIG['tick_budget']})"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed"
    )

    # Performance options
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of threads used for sensing"
    )

    # Persistence options
    parser.add_argument(
        "--load-population",
        type=str,
        default=None,
        help="Start from genomes saved in this file"
    )

    parser.add_argument(
        "--save-population",
        type=str,
        default=None,
        help="Save the final population to this file"
    )

    parser.add_argument(
        "--save-stats",
        type=str,
        default=None,
        help="Save per-generation statistics as CSV"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Log level (DEBUG, INFO, WARNING, ...)"
    )

    return parser


def main(argv=None):
    """Main function to start the simulation."""
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    overrides = {
        key: value for key, value in {
            "generations": args.generations,
            "population_size": args.population,
            "tick_budget": args.ticks,
            "seed": args.seed,
            "n_threads": args.threads,
        }.items()
        if value is not None
    }

    try:
        config = load_config(args.config, **overrides)

        logger.info("Starting simulation with configuration:")
        logger.info("  World size: {}", config["world_size"])
        logger.info("  Population: {}", config["population_size"])
        logger.info("  Generations: {}", config["generations"])
        logger.info("  Ticks per generation: {}", config["tick_budget"])
        logger.info("  Selection: {}", config["selection"])
        logger.info("  Seed: {}", config["seed"])

        sim = Simulation(config)
        if args.load_population:
            sim.load_population(args.load_population)

        history = sim.run(config["generations"])

        if history:
            best = max(stats.best for stats in history)
            logger.info("Best fitness over {} generations: {:.2f}", len(history), best)

        if args.save_population:
            sim.save_population(args.save_population)

        if args.save_stats:
            stats_path = Path(args.save_stats)
            sim.history_frame().to_csv(stats_path, index=False)
            logger.info("Statistics saved to {}", stats_path)

    except EvoSimError as e:
        logger.error("{}: {}", type(e).__name__, e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
