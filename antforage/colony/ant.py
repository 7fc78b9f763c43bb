"""Forager — the foraging view of a single ant.

The population subsystem owns ants; the foraging core only reads and
updates position, state, and carry fields each tick.  Records coming
from outside are validated once, at the boundary, by ``from_record``.

State model:

- ``IDLE``: carrying nothing, no target sensed; random walk.
- ``SEEKING``: carrying nothing, following a food trail or heading for a
  sensed resource node.
- ``RETURNING``: carrying at least one unit; heading home.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from antforage.errors import RecordValidationError


class ForagerState(Enum):
    """Discrete foraging state of an ant."""

    IDLE = "idle"
    SEEKING = "seeking"
    RETURNING = "returning"


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key among aliases."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


@dataclass
class Forager:
    """A single ant while foraging.

    Attributes:
        agent_id: Unique identifier of the ant.
        x: World x coordinate.
        y: World y coordinate.
        colony_id: Colony the ant belongs to.
        capacity: Maximum units the ant can carry.
        role: Role key selecting a ``RoleProfile``.
        state: Current foraging state.
        carried_type: Resource type being carried (None when empty).
        carried_qty: Units currently carried.
        trail_cooldown: Ticks until the ant may lay another breadcrumb.
        heading: Direction of the last move in radians (None before the
            first move or after bumping into the world edge).
    """

    agent_id: str
    x: float
    y: float
    colony_id: str
    capacity: int
    role: str = "worker"
    state: ForagerState = ForagerState.IDLE
    carried_type: str | None = None
    carried_qty: int = 0
    trail_cooldown: int = 0
    heading: float | None = None

    def __post_init__(self) -> None:
        """Enforce the carry invariants."""
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            msg = f"ant {self.agent_id}: non-finite position ({self.x}, {self.y})"
            raise RecordValidationError(msg, self.agent_id)
        if self.heading is not None and not math.isfinite(self.heading):
            msg = f"ant {self.agent_id}: non-finite heading {self.heading}"
            raise RecordValidationError(msg, self.agent_id)
        if self.capacity < 0:
            msg = f"ant {self.agent_id}: negative capacity {self.capacity}"
            raise RecordValidationError(msg, self.agent_id)
        if not 0 <= self.carried_qty <= self.capacity:
            msg = (
                f"ant {self.agent_id}: carries {self.carried_qty} "
                f"with capacity {self.capacity}"
            )
            raise RecordValidationError(msg, self.agent_id)
        if (self.carried_type is None) != (self.carried_qty == 0):
            msg = (
                f"ant {self.agent_id}: carried type {self.carried_type!r} "
                f"inconsistent with quantity {self.carried_qty}"
            )
            raise RecordValidationError(msg, self.agent_id)

    @property
    def is_carrying(self) -> bool:
        """Return True if the ant holds at least one unit."""
        return self.carried_qty > 0

    @property
    def free_capacity(self) -> int:
        """Units the ant can still pick up."""
        return self.capacity - self.carried_qty

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        *,
        default_capacity: int | None = None,
    ) -> Forager:
        """Build a Forager from a loosely-typed collaborator record.

        Accepts both snake_case keys and the persistence layer's names
        (``carrying_resource``, ``carrying_quantity``, ``type``).

        Args:
            record: Mapping with at least ``id``, ``x``, ``y`` and
                ``colony_id``.
            default_capacity: Capacity to use when the record has none
                (normally the role's carry capacity).

        Raises:
            RecordValidationError: If a field is missing or invalid.
        """
        agent_id = _pick(record, "id", "agent_id")
        if agent_id is None:
            msg = "ant record without id"
            raise RecordValidationError(msg)
        agent_id = str(agent_id)
        try:
            x = float(record["x"])
            y = float(record["y"])
            colony_id = str(_pick(record, "colony_id", "colonyId"))
            capacity = _pick(record, "capacity", default=default_capacity)
            if capacity is None:
                msg = f"ant {agent_id}: no capacity"
                raise RecordValidationError(msg, agent_id)
            state = ForagerState(_pick(record, "state", default="idle"))
            carried_qty = int(
                _pick(record, "carried_qty", "carrying_quantity", "carriedQty", default=0),
            )
            carried_type = _pick(
                record,
                "carried_type",
                "carrying_resource",
                "carriedType",
            )
            if carried_qty == 0:
                carried_type = None  # stale type left behind by a dropoff
            role = str(_pick(record, "role", "type", default="worker")).lower()
            heading = _pick(record, "heading")
            return cls(
                agent_id=agent_id,
                x=x,
                y=y,
                colony_id=colony_id,
                capacity=int(capacity),
                role=role,
                state=state,
                carried_type=str(carried_type) if carried_type is not None else None,
                carried_qty=carried_qty,
                heading=float(heading) if heading is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"ant {agent_id}: invalid record ({exc})"
            raise RecordValidationError(msg, agent_id) from exc

    def to_record(self) -> dict[str, Any]:
        """Serialise to the agent view shape handed back to collaborators."""
        return {
            "id": self.agent_id,
            "x": self.x,
            "y": self.y,
            "state": self.state.value,
            "carriedType": self.carried_type,
            "carriedQty": self.carried_qty,
            "capacity": self.capacity,
            "colonyId": self.colony_id,
            "role": self.role,
            "heading": self.heading,
        }
