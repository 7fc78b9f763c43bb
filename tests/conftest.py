"""Shared fixtures for the antforage test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from antforage.colony.ant import Forager
from antforage.colony.roles import DEFAULT_ROLES, RoleProfile
from antforage.foraging.coordinator import ForagingCoordinator
from antforage.foraging.decision import DecisionParams
from antforage.pheromones.fields import PheromoneField
from antforage.simulation.config import SimulationConfig
from antforage.world.world import InMemoryWorld


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def small_field() -> PheromoneField:
    """A 160x160 world with 16-unit cells (10x10 grid)."""
    return PheromoneField(width=160.0, height=160.0, cell_size=16.0)


@pytest.fixture
def small_config() -> SimulationConfig:
    """A 200x200 world config (no YAML file needed)."""
    return SimulationConfig(
        seed=7,
        world_width=200.0,
        world_height=200.0,
        cell_size=10.0,
        gradient_sample_radius=10.0,
    )


@pytest.fixture
def world(small_config: SimulationConfig) -> InMemoryWorld:
    """An empty world with colony ``c1`` in the centre."""
    w = InMemoryWorld(width=small_config.world_width, height=small_config.world_height)
    w.add_colony("c1", 100.0, 100.0)
    return w


@pytest.fixture
def coordinator(
    small_config: SimulationConfig,
    world: InMemoryWorld,
) -> ForagingCoordinator:
    """A coordinator bound to ``world`` with colony ``c1`` registered."""
    coord = ForagingCoordinator(
        config=small_config,
        colony_gateway=world,
        resource_gateway=world,
        ant_gateway=world,
    )
    coord.register_colony("c1")
    return coord


@pytest.fixture
def worker() -> RoleProfile:
    return DEFAULT_ROLES["worker"]


@pytest.fixture
def params() -> DecisionParams:
    return DecisionParams()


@pytest.fixture
def idle_forager() -> Forager:
    """An empty-handed worker far from its colony."""
    return Forager(agent_id="a1", x=50.0, y=50.0, colony_id="c1", capacity=5)
