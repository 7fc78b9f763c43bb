"""Gateways — the interfaces the foraging core needs from its collaborators.

Persistence, HTTP handling and the rest of the game live outside the
core.  The coordinator only talks to them through these protocols, all
of which are synchronous; a host that does real I/O is expected to
prefetch or buffer around the tick.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from antforage.colony.ant import Forager
    from antforage.colony.colony import ColonyView
    from antforage.world.resources import ResourceNode


class ColonyGateway(Protocol):
    """Colony lookups and the storage-increment operation."""

    def find_colony(self, colony_id: str) -> ColonyView | None:
        """Return the colony view, or None if the id is unknown."""
        ...

    def add_to_storage(self, colony_id: str, resource_type: str, amount: int) -> None:
        """Persist a storage increment ``{colonyId, type, amount}``."""
        ...


class ResourceGateway(Protocol):
    """Proximity queries over resource nodes and quantity decrements."""

    def find_in_area(self, x: float, y: float, radius: float) -> Iterable[ResourceNode]:
        """Return every node within ``radius`` of ``(x, y)``."""
        ...

    def harvest(self, node_id: str, amount: int) -> None:
        """Persist a quantity decrement for a node."""
        ...


class AntGateway(Protocol):
    """Loads the ants of a colony when it joins the simulation."""

    def find_ants(self, colony_id: str) -> Iterable[Forager]:
        """Return every forager belonging to the colony."""
        ...
