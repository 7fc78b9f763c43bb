"""Events — explicit notifications emitted by the coordinator.

Presentation layers (notifications, UI, persistence hooks) subscribe to
an ``EventBus`` from the outside; the simulation core never knows who is
listening.  Handlers run synchronously, in subscription order, after
the state change they describe.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from antforage.foraging.statistics import TickStatistics
    from antforage.pheromones.fields import TrailType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForagingEvent:
    """Base class of every coordinator event."""

    tick: int


@dataclass(frozen=True)
class ResourcePickedUp(ForagingEvent):
    agent_id: str
    node_id: str
    resource_type: str
    amount: int


@dataclass(frozen=True)
class ResourceDepleted(ForagingEvent):
    node_id: str


@dataclass(frozen=True)
class ResourceDelivered(ForagingEvent):
    agent_id: str
    colony_id: str
    resource_type: str
    amount: int


@dataclass(frozen=True)
class AgentFailed(ForagingEvent):
    agent_id: str
    reason: str


@dataclass(frozen=True)
class ScentMarkerPlaced(ForagingEvent):
    x: float
    y: float
    trail_type: TrailType
    strength: float


@dataclass(frozen=True)
class PheromonesCleared(ForagingEvent):
    x: float
    y: float
    radius: float
    cleared_cells: int


@dataclass(frozen=True)
class TickCompleted(ForagingEvent):
    statistics: TickStatistics


E = TypeVar("E", bound=ForagingEvent)
Handler = Callable[[ForagingEvent], None]


class EventBus:
    """Synchronous publish/subscribe hub keyed by event class."""

    def __init__(self) -> None:
        self._handlers: dict[type[ForagingEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Call ``handler`` for every emitted instance of ``event_type``.

        Subscribing to ``ForagingEvent`` receives everything.
        """
        self._handlers[event_type].append(handler)  # type: ignore[arg-type]

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)  # type: ignore[arg-type]

    def emit(self, event: ForagingEvent) -> None:
        """Deliver ``event`` to every matching handler.

        A failing handler is logged and skipped; it must not stop the
        simulation or the other subscribers.
        """
        for event_type in type(event).__mro__:
            for handler in list(self._handlers.get(event_type, ())):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Event handler %r failed on %s",
                        handler,
                        type(event).__name__,
                    )
            if event_type is ForagingEvent:
                break
