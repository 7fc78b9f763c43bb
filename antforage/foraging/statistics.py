"""Statistics — per-tick summaries of the foraging simulation.

Used by observability and UI layers; nothing in the simulation reads
them back.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from antforage.colony.ant import ForagerState

if TYPE_CHECKING:
    from antforage.colony.ant import Forager
    from antforage.pheromones.fields import PheromoneField


@dataclass(frozen=True)
class TickStatistics:
    """Aggregate state of the simulation after one tick.

    Attributes:
        tick: Tick index the summary belongs to.
        agents_total: Number of tracked foragers.
        by_state: Forager count per state (every state present).
        by_type: Forager count per role.
        carrying_current: Units carried by all foragers.
        carrying_capacity: Sum of all carry capacities.
        map_nodes: Resource nodes in the coordinator's cache.
        pheromone_summary: ``PheromoneField.summary()`` output.
        map_size: World width, height and cell size of the field.
        colonies: Registered colony ids.
        agents_processed: Foragers that acted this tick.
        errors: Per-agent failure messages of this tick.
    """

    tick: int
    agents_total: int
    by_state: dict[str, int]
    by_type: dict[str, int]
    carrying_current: int
    carrying_capacity: int
    map_nodes: int
    pheromone_summary: dict[str, Any]
    map_size: tuple[float, float, float] = (0.0, 0.0, 0.0)
    colonies: tuple[str, ...] = ()
    agents_processed: int = 0
    errors: tuple[str, ...] = ()

    @property
    def utilization_pct(self) -> float:
        """Carried units as a percentage of total capacity."""
        if self.carrying_capacity <= 0:
            return 0.0
        return self.carrying_current / self.carrying_capacity * 100.0

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the statistics export shape."""
        return {
            "tick": self.tick,
            "agentsTotal": self.agents_total,
            "byState": dict(self.by_state),
            "byType": dict(self.by_type),
            "carrying": {
                "current": self.carrying_current,
                "capacity": self.carrying_capacity,
                "utilizationPct": round(self.utilization_pct, 2),
            },
            "resources": {"mapNodes": self.map_nodes},
            "pheromoneSummary": self.pheromone_summary,
            "mapSize": {
                "width": self.map_size[0],
                "height": self.map_size[1],
                "cellSize": self.map_size[2],
            },
            "colonies": list(self.colonies),
            "agentsProcessed": self.agents_processed,
            "errors": list(self.errors),
        }


def collect_statistics(
    tick: int,
    agents: Iterable[Forager],
    *,
    map_nodes: int,
    pheromones: PheromoneField,
    colonies: Iterable[str] = (),
    agents_processed: int = 0,
    errors: Iterable[str] = (),
) -> TickStatistics:
    """Summarise the current forager population and field."""
    by_state = {state.value: 0 for state in ForagerState}
    by_type: dict[str, int] = {}
    total = carried = capacity = 0
    for agent in agents:
        total += 1
        by_state[agent.state.value] += 1
        by_type[agent.role] = by_type.get(agent.role, 0) + 1
        carried += agent.carried_qty
        capacity += agent.capacity
    return TickStatistics(
        tick=tick,
        agents_total=total,
        by_state=by_state,
        by_type=by_type,
        carrying_current=carried,
        carrying_capacity=capacity,
        map_nodes=map_nodes,
        pheromone_summary=pheromones.summary(),
        map_size=(pheromones.width, pheromones.height, pheromones.cell_size),
        colonies=tuple(colonies),
        agents_processed=agents_processed,
        errors=tuple(errors),
    )


@dataclass
class StatisticsHistory:
    """Rolling window of tick summaries; the oldest entries are evicted.

    Attributes:
        size: Maximum number of summaries kept.
    """

    size: int = 100
    _entries: deque[TickStatistics] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._entries = deque(maxlen=max(1, self.size))

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, stats: TickStatistics) -> None:
        """Append a summary, evicting the oldest one when full."""
        self._entries.append(stats)

    def latest(self, count: int = 10) -> list[TickStatistics]:
        """Return up to ``count`` most recent summaries, oldest first."""
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def clear(self) -> None:
        """Forget every summary."""
        self._entries.clear()
