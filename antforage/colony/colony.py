"""Colony — the foraging-relevant view of one colony.

Only the nest position and the storage buckets matter to the foraging
core, and the core only ever *adds* to storage.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from antforage.errors import RecordValidationError


@dataclass
class ColonyView:
    """Nest position and resource storage of a colony.

    Attributes:
        colony_id: Unique identifier.
        x: World x coordinate of the nest entrance.
        y: World y coordinate of the nest entrance.
        storage: Stored quantity per resource type.
    """

    colony_id: str
    x: float
    y: float
    storage: dict[str, int] = field(default_factory=dict)

    def store(self, resource_type: str, amount: int) -> int:
        """Add delivered resources to storage.

        Non-positive amounts are ignored so storage never decreases.

        Returns:
            The new stored quantity for ``resource_type``.
        """
        if amount > 0:
            self.storage[resource_type] = self.storage.get(resource_type, 0) + amount
        return self.storage.get(resource_type, 0)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> ColonyView:
        """Build a ColonyView from a collaborator record.

        Raises:
            RecordValidationError: If the position or storage is invalid.
        """
        try:
            storage = {
                str(k): int(v) for k, v in (record.get("storage") or {}).items()
            }
            if any(v < 0 for v in storage.values()):
                msg = f"colony {record.get('id')}: negative storage"
                raise RecordValidationError(msg)
            return cls(
                colony_id=str(record["id"]),
                x=float(record["x"]),
                y=float(record["y"]),
                storage=storage,
            )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"invalid colony record {record!r} ({exc})"
            raise RecordValidationError(msg) from exc
