"""Resource nodes and the coordinator's local cache of them.

Nodes are owned by the external resource subsystem.  The cache holds the
nodes found around active colonies; pickups decrement the cached copy
immediately so that two foragers harvesting the same node in one tick
cannot take more than it holds.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from antforage.errors import RecordValidationError

logger = logging.getLogger(__name__)


@dataclass
class ResourceNode:
    """A harvestable resource deposit.

    Attributes:
        node_id: Unique identifier.
        x: World x coordinate.
        y: World y coordinate.
        resource_type: What the node yields (``"seeds"``, ...).
        quantity: Units left; never negative.
    """

    node_id: str
    x: float
    y: float
    resource_type: str
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 0:
            msg = f"resource {self.node_id}: negative quantity {self.quantity}"
            raise RecordValidationError(msg)

    @property
    def is_depleted(self) -> bool:
        """Return True once nothing is left to harvest."""
        return self.quantity <= 0

    def distance_to(self, x: float, y: float) -> float:
        """Euclidean distance from the node to a world position."""
        return math.hypot(self.x - x, self.y - y)

    def take(self, amount: int) -> int:
        """Remove up to ``amount`` units.

        Returns:
            Units actually removed: ``min(amount, quantity)``, never
            negative.
        """
        taken = max(0, min(amount, self.quantity))
        self.quantity -= taken
        return taken

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> ResourceNode:
        """Build a node from a collaborator record.

        Accepts ``x``/``y`` as well as ``location_x``/``location_y``.

        Raises:
            RecordValidationError: If a field is missing or invalid.
        """
        try:
            x = record["x"] if "x" in record else record["location_x"]
            y = record["y"] if "y" in record else record["location_y"]
            return cls(
                node_id=str(record["id"]),
                x=float(x),
                y=float(y),
                resource_type=str(record["type"]),
                quantity=int(record["quantity"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"invalid resource record {record!r} ({exc})"
            raise RecordValidationError(msg) from exc

    def to_record(self) -> dict[str, Any]:
        """Serialise to the resource view shape."""
        return {
            "id": self.node_id,
            "x": self.x,
            "y": self.y,
            "type": self.resource_type,
            "quantity": self.quantity,
        }


class ResourceCache:
    """Nodes currently known to the coordinator, keyed by id."""

    def __init__(self, *, prune_depleted: bool = False) -> None:
        self.prune_depleted = prune_depleted
        self._nodes: dict[str, ResourceNode] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self._nodes.values())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> ResourceNode | None:
        """Return the cached node or None if it is not (or no longer) known."""
        return self._nodes.get(node_id)

    def merge(self, nodes: Iterable[ResourceNode]) -> int:
        """Insert or refresh nodes from a proximity query.

        Returns:
            Number of nodes merged.
        """
        merged = 0
        for node in nodes:
            self._nodes[node.node_id] = node
            merged += 1
        if self.prune_depleted:
            self.prune()
        return merged

    def prune(self) -> int:
        """Drop depleted nodes.

        Returns:
            Number of nodes removed.
        """
        depleted = [nid for nid, node in self._nodes.items() if node.is_depleted]
        for nid in depleted:
            del self._nodes[nid]
        if depleted:
            logger.debug("Pruned %d depleted resource nodes", len(depleted))
        return len(depleted)

    def clear(self) -> None:
        """Forget every node."""
        self._nodes.clear()

    def within(self, x: float, y: float, radius: float) -> list[ResourceNode]:
        """Return every cached node within ``radius`` of a point.

        Depleted nodes are included; they stay visible but callers must
        not treat them as pickup candidates.
        """
        if not self._nodes:
            return []
        nodes = list(self._nodes.values())
        coords = np.array([(n.x, n.y) for n in nodes], dtype=np.float64)
        dist = np.hypot(coords[:, 0] - x, coords[:, 1] - y)
        return [node for node, d in zip(nodes, dist.tolist(), strict=True) if d <= radius]
