"""Decision — the per-tick foraging choice of a single ant.

``decide`` is a pure function of the forager's current record and a
read-only snapshot of its surroundings.  It never touches the pheromone
field, the resource nodes or the colony: it returns a ``ForagingIntent``
that the coordinator applies afterwards.  That keeps every decision of a
tick independent of the others, so they can be computed in any order or
in parallel.

Movement model (one blended vector, scaled to the role's speed):

- **Not carrying** (idle/seeking): follow the strongest food trail,
  head for the nearest harvestable node, explore randomly, and keep some
  distance from crowded peers.  With nothing sensed the ant keeps
  walking roughly along its previous heading.
- **Returning**: follow the strongest home trail blended with the direct
  vector to the nest; with no home trail sensed, go straight home.

An ant never receives a zero movement vector.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from antforage.colony.ant import ForagerState
from antforage.pheromones.fields import GradientSample, TrailType

if TYPE_CHECKING:
    from numpy.random import Generator

    from antforage.colony.ant import Forager
    from antforage.colony.roles import RoleProfile
    from antforage.world.resources import ResourceNode

_EPSILON = 1e-9
_SIGNAL_EXPLORATION_SCALE = 0.5  # exploration left over when a target is sensed
_EXPLORATION_TRAIL_SCALE = 100.0  # strength at which explored ground doubles it


@dataclass(frozen=True)
class DecisionParams:
    """Tuning constants of the decision function.

    Attributes:
        pickup_range: Distance within which a node can be harvested.
        colony_radius: Distance from the nest counted as "at colony".
        separation_radius: Peers closer than this push the ant away.
        food_noise_floor: Food trail strength ignored as noise.
        home_noise_floor: Home trail strength ignored as noise.
        trail_weight: Weight of the food-trail attraction.
        resource_weight: Weight of the attraction to a sensed node.
        home_weight: Weight of the home-trail attraction.
        colony_weight: Weight of the direct vector to the nest.
        separation_weight: Weight of peer repulsion.
        danger_penalty: Multiplier applied to danger on a heading.
        food_breadcrumb: FOOD_TRAIL laid by returning ants (before the
            role multiplier).
        food_breadcrumb_cooldown: Ticks between two food breadcrumbs.
        exploration_breadcrumb: EXPLORATION_TRAIL laid by wandering ants.
        exploration_breadcrumb_cooldown: Ticks between two of those.
        heading_jitter: Largest turn (radians) an exploring ant makes away
            from its previous heading in one tick.
        heading_reset_chance: Per-tick probability that an exploring ant
            abandons its heading and picks a fresh random one.
    """

    pickup_range: float = 5.0
    colony_radius: float = 15.0
    separation_radius: float = 10.0
    food_noise_floor: float = 10.0
    home_noise_floor: float = 5.0
    trail_weight: float = 1.0
    resource_weight: float = 2.0
    home_weight: float = 1.0
    colony_weight: float = 1.0
    separation_weight: float = 0.5
    danger_penalty: float = 2.0
    food_breadcrumb: float = 80.0
    food_breadcrumb_cooldown: int = 3
    exploration_breadcrumb: float = 20.0
    exploration_breadcrumb_cooldown: int = 5
    heading_jitter: float = 0.25
    heading_reset_chance: float = 0.05


@dataclass(frozen=True)
class Surroundings:
    """Read-only snapshot of what one ant can sense this tick.

    Attributes:
        colony_x: Nest x coordinate of the ant's colony.
        colony_y: Nest y coordinate of the ant's colony.
        food_gradient: FOOD_TRAIL samples, strongest first.
        home_gradient: HOME_TRAIL samples, strongest first.
        danger_gradient: DANGER_TRAIL samples, strongest first.
        exploration_strength: EXPLORATION_TRAIL at the ant's cell.
        resources: Resource nodes near the ant (depleted ones included).
        peers: Pre-tick positions of nearby ants, excluding itself.
    """

    colony_x: float
    colony_y: float
    food_gradient: Sequence[GradientSample] = ()
    home_gradient: Sequence[GradientSample] = ()
    danger_gradient: Sequence[GradientSample] = ()
    exploration_strength: float = 0.0
    resources: Sequence[ResourceNode] = ()
    peers: Sequence[tuple[float, float]] = ()


@dataclass(frozen=True)
class TrailDeposit:
    """A breadcrumb the ant wants laid at its pre-move position."""

    trail_type: TrailType
    amount: float


@dataclass(frozen=True)
class ForagingIntent:
    """What one ant wants to do this tick.

    Attributes:
        dx: Movement along x.
        dy: Movement along y.
        next_state: State after the tick if every request succeeds.
        pickup_node_id: Node to harvest, if any.
        dropoff_amount: Units to deliver to the colony (0 for none).
        deposit: Breadcrumb to lay, if any.
        trail_cooldown: Breadcrumb cooldown to store on the ant.
    """

    dx: float
    dy: float
    next_state: ForagerState
    pickup_node_id: str | None = None
    dropoff_amount: int = 0
    deposit: TrailDeposit | None = None
    trail_cooldown: int = 0

    @property
    def magnitude(self) -> float:
        """Length of the movement vector."""
        return math.hypot(self.dx, self.dy)

    @property
    def heading(self) -> float:
        """Direction of the movement vector in radians (0 = east)."""
        return math.atan2(self.dy, self.dx)


def decide(
    forager: Forager,
    surroundings: Surroundings,
    role: RoleProfile,
    params: DecisionParams,
    rng: Generator,
) -> ForagingIntent:
    """Compute one ant's intent for this tick.

    Args:
        forager: The ant's current (pre-tick) record.
        surroundings: What the ant senses.
        role: Role profile of the ant.
        params: Decision tuning constants.
        rng: Random source for exploration.

    Returns:
        The ant's intent; its movement vector is never zero.
    """
    if forager.is_carrying:
        return _decide_returning(forager, surroundings, role, params, rng)
    return _decide_foraging(forager, surroundings, role, params, rng)


# -- State behaviours ----------------------------------------------------------


def _decide_foraging(
    forager: Forager,
    env: Surroundings,
    role: RoleProfile,
    params: DecisionParams,
    rng: Generator,
) -> ForagingIntent:
    """Blend trail, resource, exploration and separation terms."""
    vx = vy = 0.0
    sensed = False
    pickup_id: str | None = None

    target = _nearest_harvestable(env.resources, forager.x, forager.y, role.sense_radius)
    if target is not None:
        sensed = True
        dist = target.distance_to(forager.x, forager.y)
        if dist <= params.pickup_range:
            pickup_id = target.node_id
        if dist > _EPSILON:
            vx += params.resource_weight * (target.x - forager.x) / dist
            vy += params.resource_weight * (target.y - forager.y) / dist

    trail = _best_heading(
        env.food_gradient,
        params.food_noise_floor,
        env.danger_gradient,
        params.danger_penalty,
    )
    if trail is not None:
        sensed = True
        vx += params.trail_weight * trail.dx
        vy += params.trail_weight * trail.dy

    if sensed:
        explore = role.exploration_tendency * _SIGNAL_EXPLORATION_SCALE
        explore *= 1.0 + min(env.exploration_strength / _EXPLORATION_TRAIL_SCALE, 1.0)
    else:
        explore = 1.0
    rx, ry = _exploration_heading(forager.heading, params, rng)
    vx += explore * rx
    vy += explore * ry

    sx, sy = _separation(forager.x, forager.y, env.peers, params.separation_radius)
    vx += params.separation_weight * sx
    vy += params.separation_weight * sy

    deposit: TrailDeposit | None = None
    cooldown = max(0, forager.trail_cooldown - 1)
    if not sensed and forager.trail_cooldown <= 0:
        deposit = TrailDeposit(
            TrailType.EXPLORATION_TRAIL,
            params.exploration_breadcrumb * role.pheromone_multiplier,
        )
        cooldown = params.exploration_breadcrumb_cooldown

    if pickup_id is not None:
        next_state = ForagerState.RETURNING
    elif sensed:
        next_state = ForagerState.SEEKING
    else:
        next_state = ForagerState.IDLE

    dx, dy = _finalize(vx, vy, role.speed, rng, fallback=None)
    return ForagingIntent(
        dx=dx,
        dy=dy,
        next_state=next_state,
        pickup_node_id=pickup_id,
        deposit=deposit,
        trail_cooldown=cooldown,
    )


def _decide_returning(
    forager: Forager,
    env: Surroundings,
    role: RoleProfile,
    params: DecisionParams,
    rng: Generator,
) -> ForagingIntent:
    """Head home along the home trail; drop off once at the colony."""
    to_colony_x = env.colony_x - forager.x
    to_colony_y = env.colony_y - forager.y
    dist = math.hypot(to_colony_x, to_colony_y)
    direct = (to_colony_x / dist, to_colony_y / dist) if dist > _EPSILON else None

    if dist <= params.colony_radius:
        dx, dy = _finalize(to_colony_x, to_colony_y, role.speed, rng, fallback=None)
        return ForagingIntent(
            dx=dx,
            dy=dy,
            next_state=ForagerState.IDLE,
            dropoff_amount=forager.carried_qty,
            trail_cooldown=max(0, forager.trail_cooldown - 1),
        )

    vx = vy = 0.0
    if direct is not None:
        vx += params.colony_weight * direct[0]
        vy += params.colony_weight * direct[1]
    trail = _best_heading(
        env.home_gradient,
        params.home_noise_floor,
        env.danger_gradient,
        params.danger_penalty,
    )
    if trail is not None:
        vx += params.home_weight * trail.dx
        vy += params.home_weight * trail.dy

    deposit: TrailDeposit | None = None
    cooldown = max(0, forager.trail_cooldown - 1)
    if forager.trail_cooldown <= 0:
        deposit = TrailDeposit(
            TrailType.FOOD_TRAIL,
            params.food_breadcrumb * role.pheromone_multiplier,
        )
        cooldown = params.food_breadcrumb_cooldown

    dx, dy = _finalize(vx, vy, role.speed, rng, fallback=direct)
    return ForagingIntent(
        dx=dx,
        dy=dy,
        next_state=ForagerState.RETURNING,
        deposit=deposit,
        trail_cooldown=cooldown,
    )


# -- Helpers ---------------------------------------------------------------------


def _nearest_harvestable(
    resources: Sequence[ResourceNode],
    x: float,
    y: float,
    radius: float,
) -> ResourceNode | None:
    """Return the closest non-depleted node within ``radius``."""
    best: ResourceNode | None = None
    best_dist = math.inf
    for node in resources:
        if node.is_depleted:
            continue
        dist = node.distance_to(x, y)
        if dist <= radius and dist < best_dist:
            best, best_dist = node, dist
    return best


def _best_heading(
    gradient: Sequence[GradientSample],
    noise_floor: float,
    danger: Sequence[GradientSample] = (),
    danger_penalty: float = 0.0,
) -> GradientSample | None:
    """Pick the heading with the best trail score above the noise floor.

    The score is the trail strength minus ``danger_penalty`` times the
    danger strength sampled on the same heading.  Returns None when no
    heading carries a signal above ``noise_floor`` with a positive score.
    """
    danger_by_heading = {s.heading: s.strength for s in danger}
    best: GradientSample | None = None
    best_score = 0.0
    for sample in gradient:
        if sample.strength <= noise_floor:
            continue
        score = sample.strength - danger_penalty * danger_by_heading.get(sample.heading, 0.0)
        if score > best_score:
            best, best_score = sample, score
    return best


def _separation(
    x: float,
    y: float,
    peers: Sequence[tuple[float, float]],
    radius: float,
) -> tuple[float, float]:
    """Sum of unit vectors away from close peers, weighted by closeness."""
    sx = sy = 0.0
    if radius <= 0:
        return sx, sy
    for px, py in peers:
        ox, oy = x - px, y - py
        dist = math.hypot(ox, oy)
        if _EPSILON < dist < radius:
            weight = 1.0 - dist / radius
            sx += weight * ox / dist
            sy += weight * oy / dist
    return sx, sy


def _random_unit(rng: Generator) -> tuple[float, float]:
    angle = float(rng.uniform(0.0, 2.0 * math.pi))
    return math.cos(angle), math.sin(angle)


def _exploration_heading(
    heading: float | None,
    params: DecisionParams,
    rng: Generator,
) -> tuple[float, float]:
    """Unit vector within ``heading_jitter`` of the previous heading.

    Falls back to a uniformly random direction when the ant has no heading
    yet or when the per-tick reset chance fires.
    """
    if heading is None or rng.random() < params.heading_reset_chance:
        return _random_unit(rng)
    angle = heading + float(rng.uniform(-params.heading_jitter, params.heading_jitter))
    return math.cos(angle), math.sin(angle)


def _finalize(
    vx: float,
    vy: float,
    speed: float,
    rng: Generator,
    fallback: tuple[float, float] | None,
) -> tuple[float, float]:
    """Scale a blended vector to ``speed``, never returning zero.

    A vector whose terms cancelled out is replaced by ``fallback`` (a
    unit vector) or, failing that, a random heading.
    """
    length = math.hypot(vx, vy)
    if length <= _EPSILON:
        vx, vy = fallback if fallback is not None else _random_unit(rng)
        length = 1.0
    step = speed if speed > 0 else 1.0
    return vx / length * step, vy / length * step
