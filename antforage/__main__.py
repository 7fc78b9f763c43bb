"""Entry point for ``python -m antforage``.

Loads the default YAML config, builds an in-memory world with one
colony, and either opens a Pygame window to watch the ants forage or
runs headless for a fixed number of ticks.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

import numpy as np

from antforage.foraging.coordinator import ForagingCoordinator
from antforage.foraging.events import TickCompleted
from antforage.simulation.config import SimulationConfig
from antforage.simulation.driver import TickDriver
from antforage.world.world import InMemoryWorld

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("antforage")


def build_simulation(
    config: SimulationConfig,
    ants: int,
) -> tuple[InMemoryWorld, ForagingCoordinator, TickDriver]:
    """Create a populated world with one central colony and its driver.

    Args:
        config: Validated simulation configuration.
        ants: Number of ants to spawn in the colony.

    Returns:
        The world, the coordinator bound to it, and a tick driver.
    """
    rng = np.random.default_rng(config.seed)
    world = InMemoryWorld(width=config.world_width, height=config.world_height)
    world.add_colony("colony-1", config.world_width / 2, config.world_height / 2)
    world.populate(rng)
    world.spawn_ants("colony-1", ants, rng, roles=config.role_profiles())

    coordinator = ForagingCoordinator(
        config=config,
        colony_gateway=world,
        resource_gateway=world,
        ant_gateway=world,
    )
    coordinator.register_colony("colony-1")

    def persist_ants(_event: TickCompleted) -> None:
        for ant in coordinator.agents.values():
            world.save_ant(ant)

    coordinator.events.subscribe(TickCompleted, persist_ants)
    return world, coordinator, TickDriver(coordinator=coordinator)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, create the simulation, run it."""
    parser = argparse.ArgumentParser(
        prog="antforage",
        description="antforage - pheromone foraging simulation",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--ants",
        type=int,
        default=60,
        help="Ants spawned in the colony (default: 60)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window and log statistics",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=500,
        help="Ticks to run in headless mode (default: 500)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=10.0,
        help="Simulation ticks per second in the viewer (default: 10)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    world, coordinator, driver = build_simulation(config, args.ants)

    with coordinator:
        if args.headless:
            for _ in range(args.ticks):
                driver.step()
                if driver.tick % 50 == 0:
                    stats = coordinator.get_statistics()
                    logger.info(
                        "tick=%d states=%s carrying=%d/%d storage=%s",
                        stats.tick,
                        stats.by_state,
                        stats.carrying_current,
                        stats.carrying_capacity,
                        world.colonies["colony-1"].storage,
                    )
            return

        from antforage.ui.pygame_client import PygameRenderer

        renderer = PygameRenderer(
            driver=driver,
            world=world,
            ticks_per_second=args.speed,
        )
        renderer.run()


if __name__ == "__main__":
    main()
