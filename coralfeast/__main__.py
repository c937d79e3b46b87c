"""Entry point for ``python -m coralfeast``.

Loads the default YAML config, stocks every slot of an offline pond
with one creature species, runs the simulation headless for a number of
simulated seconds, and logs a summary of the pond.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import pathlib

import numpy as np

from coralfeast.logging_config import configure_logging
from coralfeast.pond.slot import Stage
from coralfeast.simulation.config import PondConfig
from coralfeast.simulation.engine import PondSimulationEngine
from coralfeast.simulation.events import CreatureDied, PhaseChanged

logger = logging.getLogger("coralfeast")

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="coralfeast",
        description="CoralFeast - pond life-cycle simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--seconds",
        type=int,
        default=600,
        help="Simulated seconds to run (default: 600)",
    )
    parser.add_argument(
        "--stock",
        default=None,
        help="Creature slug to stock in every slot (default: first in catalog)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $CORALFEAST_LOG_LEVEL or INFO)",
    )
    return parser


async def simulate(config: PondConfig, seconds: int, creature: str | None) -> PondSimulationEngine:
    """Stock the pond, run it and harvest whatever becomes ready.

    Args:
        config: Pond configuration.
        seconds: Simulated seconds to run.
        creature: Creature slug to stock, or None for the first one.

    Returns:
        The engine after the run.
    """
    engine = PondSimulationEngine(config=config)
    engine.events.subscribe(_log_event)

    if config.catalog.creatures:
        spec = config.catalog.creature(creature or next(iter(config.catalog.creatures)))
        for slot in engine.pond.slots:
            await engine.gateway.stock(slot.index, spec)

    for _ in range(seconds):
        engine.tick()
        for slot in engine.pond.slots:
            if slot.stage == Stage.READY:
                await engine.gateway.harvest(slot.index)
    return engine


def _log_event(event: object) -> None:
    if isinstance(event, PhaseChanged):
        logger.info("-- %s (day %d) --", event.phase, event.day)
    elif isinstance(event, CreatureDied):
        logger.info("slot %d lost to %s", event.slot, event.cause)


def summarize(engine: PondSimulationEngine) -> None:
    """Log day, phase, stage counts, mean health and balance."""
    counts = engine.pond.stage_counts()
    health = engine.pond.health_grid()
    mean_health = float(np.nanmean(health)) if np.any(~np.isnan(health)) else 0.0
    logger.info(
        "Day %d, %s: %s",
        engine.cycle.state.current_day,
        engine.cycle.state.phase.value,
        ", ".join(f"{s.value}={counts[s]}" for s in Stage),
    )
    logger.info("Mean health %.1f, balance %s", mean_health, getattr(engine.wallet, "balance", "?"))


def main() -> None:
    """Parse CLI args, run the simulation, log a summary."""
    args = build_parser().parse_args()
    configure_logging(level=args.log_level)

    config = PondConfig.from_yaml(args.config)
    engine = asyncio.run(simulate(config, args.seconds, args.stock))
    summarize(engine)


if __name__ == "__main__":
    main()
