"""ForagingCoordinator — owns the field and runs one foraging tick.

The coordinator is the single owner of the pheromone field, the resource
cache and the tracked foragers.  Each tick runs in a fixed order:

1. Decay the pheromone field (once per tick index)
2. Refresh the resource cache around every registered colony
3. Compute every forager's decision from a pre-tick snapshot
4. Apply the intents one by one (move, breadcrumb, pickup, dropoff)
5. Record statistics and emit ``TickCompleted``

Decisions only read shared state, so step 3 may run on a thread pool.
Step 4 is serial: two ants harvesting the same node or delivering to the
same colony in one tick can never lose an update.  A failing ant is
logged, reported and left in its pre-tick state; the tick goes on.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.random import Generator

from antforage.colony.ant import Forager, ForagerState
from antforage.colony.roles import RoleProfile, resolve_role
from antforage.errors import AgentProcessingError, TickInProgressError, UnknownColonyError
from antforage.foraging.decision import (
    DecisionParams,
    ForagingIntent,
    Surroundings,
    decide,
)
from antforage.foraging.events import (
    AgentFailed,
    EventBus,
    ForagingEvent,
    PheromonesCleared,
    ResourceDelivered,
    ResourceDepleted,
    ResourcePickedUp,
    ScentMarkerPlaced,
    TickCompleted,
)
from antforage.foraging.statistics import (
    StatisticsHistory,
    TickStatistics,
    collect_statistics,
)
from antforage.pheromones.fields import PheromoneField, TrailType, VisibleCell
from antforage.world.resources import ResourceCache

if TYPE_CHECKING:
    from antforage.colony.colony import ColonyView
    from antforage.simulation.config import SimulationConfig
    from antforage.world.gateways import AntGateway, ColonyGateway, ResourceGateway

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """Outcome of one ``tick`` call.

    Attributes:
        tick: Tick index.
        decayed: Whether the field decayed this tick.
        agents_processed: Foragers whose intent was applied.
        pickups: Successful pickups.
        dropoffs: Successful dropoffs.
        pheromone_operations: Deposits made by the tick.
        failed_agents: Ids of foragers left in their pre-tick state.
        errors: Human-readable failure messages.
    """

    tick: int
    decayed: bool = False
    agents_processed: int = 0
    pickups: int = 0
    dropoffs: int = 0
    pheromone_operations: int = 0
    failed_agents: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class ForagingCoordinator:
    """Drives the foraging simulation forward tick by tick.

    Attributes:
        config: Validated simulation configuration.
        colony_gateway: Colony lookups and storage increments.
        resource_gateway: Resource proximity queries and decrements.
        ant_gateway: Optional source of a colony's ants on registration.
        events: Bus the coordinator emits events on.
        pheromones: The shared pheromone field.
        colonies: Registered colonies by id.
        agents: Tracked foragers by id.
        resource_cache: Nodes found around registered colonies.
        history: Rolling window of tick summaries.
        rng: Master seeded random generator.
        last_tick: Index of the last completed tick.
    """

    config: SimulationConfig
    colony_gateway: ColonyGateway
    resource_gateway: ResourceGateway
    ant_gateway: AntGateway | None = None
    events: EventBus = field(default_factory=EventBus)
    pheromones: PheromoneField = field(init=False)
    colonies: dict[str, ColonyView] = field(init=False, default_factory=dict)
    agents: dict[str, Forager] = field(init=False, default_factory=dict)
    resource_cache: ResourceCache = field(init=False)
    history: StatisticsHistory = field(init=False)
    rng: Generator = field(init=False)
    last_tick: int | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Validate config and build the field, cache and RNG.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config.validate()
        self.pheromones = self.config.build_field()
        self.resource_cache = ResourceCache(prune_depleted=self.config.prune_depleted)
        self.history = StatisticsHistory(size=self.config.history_size)
        self.rng = np.random.default_rng(self.config.seed)
        self._roles: dict[str, RoleProfile] = self.config.role_profiles()
        self._params: DecisionParams = self.config.decision_params()
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        if self.config.decision_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.decision_workers,
                thread_name_prefix="forage-decide",
            )

    def close(self) -> None:
        """Shut down the decision thread pool, if any."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> ForagingCoordinator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Colony and agent lifecycle ------------------------------------------

    def register_colony(self, colony_id: str) -> bool:
        """Start simulating a colony.

        Lays the initial home trail at the nest and loads the colony's
        ants from the ant gateway, if one was given.

        Returns:
            True if the colony was newly registered, False if it already
            was (a no-op).

        Raises:
            UnknownColonyError: If the colony gateway does not know the id.
        """
        if colony_id in self.colonies:
            logger.info("Colony %s already registered; ignoring", colony_id)
            return False
        colony = self.colony_gateway.find_colony(colony_id)
        if colony is None:
            msg = f"unknown colony {colony_id!r}"
            raise UnknownColonyError(msg)
        self.colonies[colony_id] = colony
        self.pheromones.deposit(
            colony.x,
            colony.y,
            TrailType.HOME_TRAIL,
            self.config.colony_trail_strength,
        )

        loaded = 0
        if self.ant_gateway is not None:
            for ant in self.ant_gateway.find_ants(colony_id):
                if self.add_agent(ant):
                    loaded += 1
        logger.info("Registered colony %s with %d ants", colony_id, loaded)
        return True

    def unregister_colony(self, colony_id: str) -> bool:
        """Stop simulating a colony and drop its foragers.

        Returns:
            True if the colony was registered, False otherwise.
        """
        if self.colonies.pop(colony_id, None) is None:
            logger.info("Colony %s not registered; nothing to remove", colony_id)
            return False
        dropped = [aid for aid, a in self.agents.items() if a.colony_id == colony_id]
        for agent_id in dropped:
            del self.agents[agent_id]
        logger.info("Unregistered colony %s (%d ants dropped)", colony_id, len(dropped))
        return True

    def add_agent(self, forager: Forager) -> bool:
        """Track a forager.

        Returns:
            True if added, False if an ant with that id is already tracked.
        """
        if forager.agent_id in self.agents:
            logger.info("Ant %s already tracked; ignoring", forager.agent_id)
            return False
        self.agents[forager.agent_id] = forager
        logger.debug("Added ant %s to colony %s", forager.agent_id, forager.colony_id)
        return True

    def add_agent_record(self, record: Mapping[str, Any]) -> bool:
        """Validate a raw ant record and track it.

        A record without a capacity gets its role's carry capacity.

        Raises:
            RecordValidationError: If the record is malformed.
        """
        role = resolve_role(self._roles, str(record.get("role", record.get("type", "worker"))))
        forager = Forager.from_record(record, default_capacity=role.carry_capacity)
        return self.add_agent(forager)

    def remove_agent(self, agent_id: str) -> bool:
        """Stop tracking a forager.

        Returns:
            True if removed, False if it was not tracked.
        """
        if self.agents.pop(agent_id, None) is None:
            logger.info("Ant %s not tracked; nothing to remove", agent_id)
            return False
        logger.debug("Removed ant %s", agent_id)
        return True

    # -- Tick ----------------------------------------------------------------

    def tick(self, current_tick: int) -> TickReport:
        """Advance the simulation by one tick.

        Args:
            current_tick: Index of the tick being run.

        Returns:
            A report of what happened; per-agent failures are listed in
            it instead of being raised.

        Raises:
            TickInProgressError: If another tick is still running.
        """
        if not self._lock.acquire(blocking=False):
            msg = f"tick {current_tick} started while another tick is running"
            raise TickInProgressError(msg)
        try:
            return self._run_tick(current_tick)
        finally:
            self._lock.release()

    def _run_tick(self, current_tick: int) -> TickReport:
        report = TickReport(tick=current_tick)

        # 1. Decay
        report.decayed = self.pheromones.decay_tick(current_tick)

        # 2. Resource cache
        self._refresh_resources(report)

        # 3. Decisions from the pre-tick snapshot
        agents = [a for a in self.agents.values() if a.colony_id in self.colonies]
        positions = np.array([(a.x, a.y) for a in agents], dtype=np.float64).reshape(-1, 2)
        rngs = self.rng.spawn(len(agents)) if agents else []
        jobs = list(range(len(agents)))

        def run(index: int) -> ForagingIntent | Exception:
            try:
                return self._decide_for(agents[index], index, positions, rngs[index])
            except Exception as exc:
                return exc

        if self._executor is not None:
            outcomes = list(self._executor.map(run, jobs))
        else:
            outcomes = [run(i) for i in jobs]

        # 4. Serial application
        for agent, outcome in zip(agents, outcomes, strict=True):
            # An event handler may have removed the ant or its colony
            if agent.agent_id not in self.agents or agent.colony_id not in self.colonies:
                continue
            if isinstance(outcome, Exception):
                self._record_failure(agent.agent_id, outcome, report)
                continue
            try:
                self._apply_intent(agent, outcome, report)
            except Exception as exc:
                self._record_failure(agent.agent_id, exc, report)
                continue
            report.agents_processed += 1

        # 5. Statistics
        self.last_tick = current_tick
        stats = collect_statistics(
            current_tick,
            self.agents.values(),
            map_nodes=len(self.resource_cache),
            pheromones=self.pheromones,
            colonies=self.colonies.keys(),
            agents_processed=report.agents_processed,
            errors=report.errors,
        )
        self.history.record(stats)
        self.events.emit(TickCompleted(tick=current_tick, statistics=stats))
        return report

    def _refresh_resources(self, report: TickReport) -> None:
        """Merge nodes found around every registered colony into the cache."""
        for colony in self.colonies.values():
            try:
                nodes = self.resource_gateway.find_in_area(
                    colony.x,
                    colony.y,
                    self.config.resource_scan_radius,
                )
                self.resource_cache.merge(nodes)
            except Exception as exc:
                message = f"resource refresh for colony {colony.colony_id} failed: {exc}"
                logger.warning(message)
                report.errors.append(message)

    def _decide_for(
        self,
        agent: Forager,
        index: int,
        positions: np.ndarray,
        rng: Generator,
    ) -> ForagingIntent:
        """Gather one ant's surroundings and run its decision."""
        colony = self.colonies.get(agent.colony_id)
        if colony is None:
            msg = f"colony {agent.colony_id} not registered"
            raise AgentProcessingError(msg, agent.agent_id)
        role = resolve_role(self._roles, agent.role)
        radius = self.config.gradient_sample_radius

        offsets = positions - positions[index]
        dist = np.hypot(offsets[:, 0], offsets[:, 1])
        near = dist <= self.config.peer_radius
        near[index] = False
        peers = [(float(px), float(py)) for px, py in positions[near]]

        surroundings = Surroundings(
            colony_x=colony.x,
            colony_y=colony.y,
            food_gradient=self.pheromones.sample_gradient(
                agent.x, agent.y, TrailType.FOOD_TRAIL, radius
            ),
            home_gradient=self.pheromones.sample_gradient(
                agent.x, agent.y, TrailType.HOME_TRAIL, radius
            ),
            danger_gradient=self.pheromones.sample_gradient(
                agent.x, agent.y, TrailType.DANGER_TRAIL, radius
            ),
            exploration_strength=self.pheromones.read(
                agent.x, agent.y, TrailType.EXPLORATION_TRAIL
            ),
            resources=self.resource_cache.within(
                agent.x, agent.y, self.config.agent_resource_radius
            ),
            peers=peers,
        )
        return decide(agent, surroundings, role, self._params, rng)

    def _apply_intent(
        self,
        agent: Forager,
        intent: ForagingIntent,
        report: TickReport,
    ) -> None:
        """Apply one intent; nothing is mutated if validation fails.

        Pickups and dropoffs are clamped to what is feasible: a node
        never gives more than it holds, an ant never carries more than
        its capacity, and resource types are never mixed.

        Raises:
            AgentProcessingError: If the colony or target node vanished.
        """
        tick = report.tick
        colony = self.colonies.get(agent.colony_id)
        if colony is None:
            msg = f"colony {agent.colony_id} vanished"
            raise AgentProcessingError(msg, agent.agent_id)
        node = None
        if intent.pickup_node_id is not None:
            node = self.resource_cache.get(intent.pickup_node_id)
            if node is None:
                msg = f"resource node {intent.pickup_node_id} vanished"
                raise AgentProcessingError(msg, agent.agent_id)

        carried_type = agent.carried_type
        carried_qty = agent.carried_qty

        # Pickup (clamped)
        taken = 0
        if node is not None:
            if carried_type not in (None, node.resource_type):
                logger.debug(
                    "Ant %s carries %s; refusing %s",
                    agent.agent_id,
                    carried_type,
                    node.resource_type,
                )
            else:
                taken = max(0, min(agent.free_capacity, node.quantity))
                if taken > 0:
                    self.resource_gateway.harvest(node.node_id, taken)
                elif node.is_depleted:
                    logger.debug("Node %s already depleted", node.node_id)

        # Dropoff (clamped)
        delivered = 0
        if intent.dropoff_amount > 0 and carried_qty > 0 and carried_type is not None:
            delivered = min(intent.dropoff_amount, carried_qty)
            self.colony_gateway.add_to_storage(colony.colony_id, carried_type, delivered)

        # -- Commit: every check and gateway call has succeeded --
        # Events are emitted only once the record is written back
        pending: list[ForagingEvent] = []
        if intent.deposit is not None and self.pheromones.deposit(
            agent.x,
            agent.y,
            intent.deposit.trail_type,
            intent.deposit.amount,
        ):
            report.pheromone_operations += 1

        if taken > 0 and node is not None:
            node.take(taken)
            carried_type = node.resource_type
            carried_qty += taken
            report.pickups += 1
            if self.pheromones.deposit(
                node.x, node.y, TrailType.FOOD_TRAIL, self.config.pickup_trail_strength
            ):
                report.pheromone_operations += 1
            logger.debug(
                "Ant %s picked up %d %s from %s",
                agent.agent_id,
                taken,
                node.resource_type,
                node.node_id,
            )
            pending.append(
                ResourcePickedUp(
                    tick=tick,
                    agent_id=agent.agent_id,
                    node_id=node.node_id,
                    resource_type=node.resource_type,
                    amount=taken,
                ),
            )
            if node.is_depleted:
                pending.append(ResourceDepleted(tick=tick, node_id=node.node_id))

        if delivered > 0 and carried_type is not None:
            colony.store(carried_type, delivered)
            carried_qty -= delivered
            report.dropoffs += 1
            if self.pheromones.deposit(
                colony.x, colony.y, TrailType.HOME_TRAIL, self.config.dropoff_trail_strength
            ):
                report.pheromone_operations += 1
            logger.debug(
                "Ant %s delivered %d %s to colony %s",
                agent.agent_id,
                delivered,
                carried_type,
                colony.colony_id,
            )
            pending.append(
                ResourceDelivered(
                    tick=tick,
                    agent_id=agent.agent_id,
                    colony_id=colony.colony_id,
                    resource_type=carried_type,
                    amount=delivered,
                ),
            )

        if carried_qty > 0:
            state = ForagerState.RETURNING
        else:
            carried_type = None
            state = intent.next_state
            if state is ForagerState.RETURNING:
                state = ForagerState.SEEKING  # pickup came up empty

        x = self._clamp(agent.x + intent.dx, self.pheromones.width)
        y = self._clamp(agent.y + intent.dy, self.pheromones.height)
        # A move cut short by the world edge forgets its heading
        edge_hit = x != agent.x + intent.dx or y != agent.y + intent.dy
        self.agents[agent.agent_id] = replace(
            agent,
            x=x,
            y=y,
            state=state,
            carried_type=carried_type,
            carried_qty=carried_qty,
            trail_cooldown=intent.trail_cooldown,
            heading=None if edge_hit else intent.heading,
        )
        for event in pending:
            self.events.emit(event)

    def _record_failure(
        self,
        agent_id: str,
        exc: BaseException,
        report: TickReport,
    ) -> None:
        """Log and report an ant that could not act this tick."""
        reason = str(exc) or type(exc).__name__
        logger.warning("Ant %s skipped tick %d: %s", agent_id, report.tick, reason)
        report.failed_agents.append(agent_id)
        report.errors.append(f"Ant {agent_id}: {reason}")
        self.events.emit(AgentFailed(tick=report.tick, agent_id=agent_id, reason=reason))

    @staticmethod
    def _clamp(value: float, upper: float) -> float:
        """Keep a coordinate inside ``[0, upper)``."""
        return min(max(value, 0.0), math.nextafter(upper, 0.0))

    # -- Player interaction --------------------------------------------------

    def place_scent_marker(
        self,
        x: float,
        y: float,
        trail_type: TrailType | str = TrailType.FOOD_TRAIL,
        strength: float = 200.0,
    ) -> bool:
        """Lay a player-placed trail marker.

        Returns:
            True on success, False for an off-world position, an unknown
            trail type, or a non-positive strength.
        """
        try:
            ttype = TrailType.parse(trail_type)
        except ValueError:
            logger.info("Rejected scent marker of unknown type %r", trail_type)
            return False
        placed = self.pheromones.deposit(x, y, ttype, strength)
        if placed:
            logger.info("Player placed %s marker at (%.1f, %.1f)", ttype.value, x, y)
            self.events.emit(
                ScentMarkerPlaced(
                    tick=self.last_tick or 0,
                    x=x,
                    y=y,
                    trail_type=ttype,
                    strength=strength,
                ),
            )
        return placed

    def clear_pheromone_area(self, x: float, y: float, radius: float = 20.0) -> int:
        """Clear every trail within ``radius`` of a point.

        Returns:
            Number of non-zero cell values cleared.
        """
        cleared = self.pheromones.clear_area(x, y, radius)
        logger.info("Cleared %d pheromone cells around (%.1f, %.1f)", cleared, x, y)
        self.events.emit(
            PheromonesCleared(
                tick=self.last_tick or 0,
                x=x,
                y=y,
                radius=radius,
                cleared_cells=cleared,
            ),
        )
        return cleared

    # -- Queries -------------------------------------------------------------

    def get_statistics(self) -> TickStatistics:
        """Summarise the current state (not necessarily a recorded tick)."""
        return collect_statistics(
            self.last_tick or 0,
            self.agents.values(),
            map_nodes=len(self.resource_cache),
            pheromones=self.pheromones,
            colonies=self.colonies.keys(),
        )

    def get_statistics_history(self, count: int = 10) -> list[TickStatistics]:
        """Return up to ``count`` most recent tick summaries, oldest first."""
        return self.history.latest(count)

    def pheromone_visualization(
        self,
        center_x: float,
        center_y: float,
        radius: float = 200.0,
        min_strength: float = 15.0,
    ) -> list[VisibleCell]:
        """Export visible cells whose centre lies within ``radius`` of a viewpoint."""
        result: list[VisibleCell] = []
        for cell in self.pheromones.visible_cells(min_strength):
            cx, cy = self.pheromones.cell_center(cell.cell_x, cell.cell_y)
            if math.hypot(cx - center_x, cy - center_y) <= radius:
                result.append(cell)
        return result

    def agent_details(self, agent_id: str) -> dict[str, Any] | None:
        """Debug view of one forager and what it currently senses."""
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        gradient = self.pheromones.sample_gradient(
            agent.x,
            agent.y,
            TrailType.FOOD_TRAIL,
            self.config.gradient_sample_radius,
        )
        nearby = [
            {"id": other.agent_id, "x": other.x, "y": other.y, "state": other.state.value}
            for other in self.agents.values()
            if other.agent_id != agent_id
            and math.hypot(other.x - agent.x, other.y - agent.y) <= self.config.peer_radius
        ]
        return {
            "ant": agent.to_record(),
            "currentPheromones": {
                t.value: s for t, s in self.pheromones.sample_all(agent.x, agent.y).items()
            },
            "foodTrailGradient": [
                {"heading": s.heading, "strength": s.strength} for s in gradient[:5]
            ],
            "nearbyAnts": nearby,
        }

    def reset(self) -> None:
        """Clear the field, tracked foragers, resource cache and history.

        Registered colonies stay registered.
        """
        self.pheromones.clear_all()
        self.pheromones.last_decay_tick = None
        self.agents.clear()
        self.resource_cache.clear()
        self.history.clear()
        self.last_tick = None
        logger.info("Foraging system reset")
