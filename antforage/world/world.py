"""InMemoryWorld — a self-contained stand-in for the persistence layer.

Implements every gateway protocol over plain dictionaries so the core
can run headless (CLI, viewer, tests) without a database.  Lookups hand
out copies, exactly like records freshly loaded from storage would be.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

import numpy as np

from antforage.colony.ant import Forager
from antforage.colony.colony import ColonyView
from antforage.colony.roles import DEFAULT_ROLES, RoleProfile, resolve_role
from antforage.world.resources import ResourceNode

if TYPE_CHECKING:
    from numpy.random import Generator

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ("seeds", "nectar", "insects", "fungus")


@dataclass
class InMemoryWorld:
    """Colonies, ants and resource nodes kept in memory.

    Attributes:
        width: World width in world units.
        height: World height in world units.
        colonies: Colony views by id.
        resources: Resource nodes by id.
        ants: Ant records by id.
    """

    width: float
    height: float
    colonies: dict[str, ColonyView] = field(default_factory=dict)
    resources: dict[str, ResourceNode] = field(default_factory=dict)
    ants: dict[str, Forager] = field(default_factory=dict)

    # -- Setup ---------------------------------------------------------------

    def add_colony(self, colony_id: str, x: float, y: float) -> ColonyView:
        """Create a colony with empty storage."""
        colony = ColonyView(colony_id=colony_id, x=x, y=y)
        self.colonies[colony_id] = colony
        return colony

    def add_resource(self, node: ResourceNode) -> None:
        """Place a resource node in the world."""
        self.resources[node.node_id] = node

    def spawn_ants(
        self,
        colony_id: str,
        count: int,
        rng: Generator,
        *,
        roles: dict[str, RoleProfile] | None = None,
        scout_ratio: float = 0.2,
    ) -> list[Forager]:
        """Create ``count`` idle ants scattered just around the nest.

        Args:
            colony_id: Owning colony (must exist).
            count: Number of ants to create.
            rng: Seeded random generator.
            roles: Role profiles to take capacities from.
            scout_ratio: Probability that a new ant is a scout.

        Returns:
            The newly created foragers.
        """
        roles = roles or DEFAULT_ROLES
        colony = self.colonies[colony_id]
        spawned: list[Forager] = []
        for _ in range(count):
            role = "scout" if rng.random() < scout_ratio else "worker"
            profile = resolve_role(roles, role)
            angle = float(rng.uniform(0.0, 2.0 * np.pi))
            dist = float(rng.uniform(0.0, 5.0))
            ant = Forager(
                agent_id=f"{colony_id}-ant-{len(self.ants) + 1}",
                x=min(max(colony.x + dist * np.cos(angle), 0.0), self.width - 1e-6),
                y=min(max(colony.y + dist * np.sin(angle), 0.0), self.height - 1e-6),
                colony_id=colony_id,
                capacity=profile.carry_capacity,
                role=profile.name,
            )
            self.ants[ant.agent_id] = ant
            spawned.append(ant)
        return spawned

    def populate(
        self,
        rng: Generator,
        *,
        num_patches: int = 12,
        nodes_per_patch: int = 4,
        patch_radius: float = 40.0,
        quantity: tuple[int, int] = (10, 60),
    ) -> None:
        """Scatter clustered resource patches across the world.

        Clusters reward trail formation: once one node of a patch is
        found, the food trail leads foragers to its neighbours too.

        Args:
            rng: Seeded random generator.
            num_patches: Number of patches to place.
            nodes_per_patch: Resource nodes per patch.
            patch_radius: Spread of the nodes around a patch centre.
            quantity: (min, max) units per node.
        """
        lo, hi = quantity
        for _ in range(num_patches):
            cx = float(rng.uniform(0.0, self.width))
            cy = float(rng.uniform(0.0, self.height))
            rtype = RESOURCE_TYPES[int(rng.integers(len(RESOURCE_TYPES)))]
            for _ in range(nodes_per_patch):
                x = float(np.clip(cx + rng.normal(0.0, patch_radius / 2), 0, self.width - 1e-6))
                y = float(np.clip(cy + rng.normal(0.0, patch_radius / 2), 0, self.height - 1e-6))
                node = ResourceNode(
                    node_id=f"res-{len(self.resources) + 1}",
                    x=x,
                    y=y,
                    resource_type=rtype,
                    quantity=int(rng.integers(lo, hi + 1)),
                )
                self.add_resource(node)

    # -- ColonyGateway ---------------------------------------------------------

    def find_colony(self, colony_id: str) -> ColonyView | None:
        colony = self.colonies.get(colony_id)
        if colony is None:
            return None
        return replace(colony, storage=dict(colony.storage))

    def add_to_storage(self, colony_id: str, resource_type: str, amount: int) -> None:
        self.colonies[colony_id].store(resource_type, amount)

    # -- ResourceGateway -------------------------------------------------------

    def find_in_area(self, x: float, y: float, radius: float) -> list[ResourceNode]:
        return [
            replace(node)
            for node in self.resources.values()
            if node.distance_to(x, y) <= radius
        ]

    def harvest(self, node_id: str, amount: int) -> None:
        node = self.resources.get(node_id)
        if node is None:
            logger.warning("Harvest of unknown resource node %s", node_id)
            return
        node.take(amount)

    # -- AntGateway ------------------------------------------------------------

    def find_ants(self, colony_id: str) -> Iterable[Forager]:
        return [replace(a) for a in self.ants.values() if a.colony_id == colony_id]

    def save_ant(self, forager: Forager) -> None:
        """Store the latest state of an ant."""
        self.ants[forager.agent_id] = replace(forager)
