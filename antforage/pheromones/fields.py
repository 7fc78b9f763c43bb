"""PheromoneField — multi-layer decaying trail grid.

The world is continuous (floating-point coordinates); the field maps it
onto a coarse grid of square cells, one NumPy 2D array per trail type.
Every operation is forgiving about coordinates: anything outside the
world extent is a silent no-op or an empty result, because foragers
routinely wander right up to the edges.

Strength values live in ``[0, STRENGTH_CAP]``.  Deposits are additive
and saturate at the layer cap, so heavily used routes dominate.  Decay
is delegated to ``decay.py``.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from antforage.errors import ConfigurationError
from antforage.pheromones.decay import decay_field

STRENGTH_CAP = 255.0
ZERO_FLOOR = 0.1


class TrailType(Enum):
    """Trail channels; each one gets its own layer."""

    HOME_TRAIL = "home_trail"
    FOOD_TRAIL = "food_trail"
    EXPLORATION_TRAIL = "exploration_trail"
    DANGER_TRAIL = "danger_trail"

    @classmethod
    def parse(cls, value: TrailType | str) -> TrailType:
        """Accept an enum member, its name, or its value.

        Raises:
            ValueError: If the string names no trail type.
        """
        if isinstance(value, cls):
            return value
        text = str(value)
        for member in cls:
            if text in (member.name, member.value):
                return member
        msg = f"unknown trail type: {value!r}"
        raise ValueError(msg)


# (decay_rate, max_strength, base_strength) per trail type.
# Food sources go stale faster than the way home does.
TRAIL_DEFAULTS: dict[TrailType, tuple[float, float, float]] = {
    TrailType.FOOD_TRAIL: (0.02, STRENGTH_CAP, 100.0),
    TrailType.HOME_TRAIL: (0.015, 200.0, 80.0),
    TrailType.EXPLORATION_TRAIL: (0.05, 100.0, 30.0),
    TrailType.DANGER_TRAIL: (0.01, STRENGTH_CAP, 150.0),
}


@dataclass
class TrailLayer:
    """A single trail channel stored as a 2D NumPy array.

    Attributes:
        trail_type: Which trail this layer represents.
        grid: Strength values, indexed ``grid[cell_y, cell_x]``.
        decay_rate: Fraction of strength lost per decay step.
        max_strength: Saturation cap for deposits (never above 255).
        base_strength: Default amount for a deposit with no explicit
            strength (player markers use it).
    """

    trail_type: TrailType
    grid: NDArray[np.float64]
    decay_rate: float = 0.02
    max_strength: float = STRENGTH_CAP
    base_strength: float = 100.0


@dataclass(frozen=True)
class GradientSample:
    """Trail strength measured along one heading of the sampling ring.

    Attributes:
        heading: Angle in radians (0 = east, pi/2 = +y).
        dx: Unit x component of the heading.
        dy: Unit y component of the heading.
        strength: Strength of the cell reached at the sample radius.
    """

    heading: float
    dx: float
    dy: float
    strength: float


@dataclass(frozen=True)
class VisibleCell:
    """One exported cell for a map-overlay renderer."""

    cell_x: int
    cell_y: int
    trail_type: TrailType
    strength: float

    def to_dict(self) -> dict[str, object]:
        """Serialise to the overlay export shape."""
        return {
            "cellX": self.cell_x,
            "cellY": self.cell_y,
            "type": self.trail_type.value,
            "strength": round(self.strength, 2),
        }


@dataclass
class PheromoneField:
    """All trail layers for one simulated world.

    Attributes:
        width: World width in world units.
        height: World height in world units.
        cell_size: World units per grid cell.
        headings: Number of directions in the gradient sampling ring.
        decay_interval: Ticks between two decay steps.
        zero_floor: Strength below which a decayed cell snaps to 0.
        layers: Mapping from TrailType to its layer.
    """

    width: float
    height: float
    cell_size: float = 16.0
    headings: int = 8
    decay_interval: int = 1
    zero_floor: float = ZERO_FLOOR
    layers: dict[TrailType, TrailLayer] = field(init=False, repr=False)
    grid_width: int = field(init=False)
    grid_height: int = field(init=False)
    last_decay_tick: int | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Validate dimensions and create one zeroed layer per trail type."""
        if not (self.width > 0 and self.height > 0):
            msg = f"world size must be positive, got {self.width}x{self.height}"
            raise ConfigurationError(msg)
        if not self.cell_size > 0:
            msg = f"cell size must be positive, got {self.cell_size}"
            raise ConfigurationError(msg)
        if self.headings < 4:
            msg = f"gradient ring needs at least 4 headings, got {self.headings}"
            raise ConfigurationError(msg)
        if self.decay_interval < 1:
            msg = f"decay interval must be >= 1, got {self.decay_interval}"
            raise ConfigurationError(msg)

        self.grid_width = math.ceil(self.width / self.cell_size)
        self.grid_height = math.ceil(self.height / self.cell_size)

        angles = np.arange(self.headings, dtype=np.float64) * (
            2.0 * math.pi / self.headings
        )
        self._ring = [
            (float(a), float(math.cos(a)), float(math.sin(a))) for a in angles
        ]

        self.layers = {}
        for trail_type in TrailType:
            decay_rate, max_strength, base_strength = TRAIL_DEFAULTS[trail_type]
            self.layers[trail_type] = TrailLayer(
                trail_type=trail_type,
                grid=np.zeros((self.grid_height, self.grid_width), dtype=np.float64),
                decay_rate=decay_rate,
                max_strength=max_strength,
                base_strength=base_strength,
            )

    def configure_layer(
        self,
        trail_type: TrailType,
        *,
        decay_rate: float | None = None,
        max_strength: float | None = None,
        base_strength: float | None = None,
    ) -> None:
        """Override the tuning constants of one layer.

        Raises:
            ConfigurationError: If a rate is outside ``[0, 1]`` or the cap
                is outside ``(0, 255]``.
        """
        layer = self.layers[trail_type]
        if decay_rate is not None:
            if not 0.0 <= decay_rate <= 1.0:
                msg = f"{trail_type.value}: decay rate {decay_rate} not in [0, 1]"
                raise ConfigurationError(msg)
            layer.decay_rate = float(decay_rate)
        if max_strength is not None:
            if not 0.0 < max_strength <= STRENGTH_CAP:
                msg = (
                    f"{trail_type.value}: max strength {max_strength} "
                    f"not in (0, {STRENGTH_CAP:g}]"
                )
                raise ConfigurationError(msg)
            layer.max_strength = float(max_strength)
            np.minimum(layer.grid, layer.max_strength, out=layer.grid)
        if base_strength is not None:
            layer.base_strength = float(base_strength)

    # -- Coordinates ---------------------------------------------------------

    def in_bounds(self, x: float, y: float) -> bool:
        """Return True if world coordinates lie inside the world extent."""
        return 0.0 <= x < self.width and 0.0 <= y < self.height

    def to_cell(self, x: float, y: float) -> tuple[int, int] | None:
        """Map world coordinates to ``(cell_x, cell_y)``, or None off-world."""
        if not self.in_bounds(x, y):
            return None
        cell_x = min(int(x // self.cell_size), self.grid_width - 1)
        cell_y = min(int(y // self.cell_size), self.grid_height - 1)
        return cell_x, cell_y

    def cell_center(self, cell_x: int, cell_y: int) -> tuple[float, float]:
        """Return the world coordinates of a cell's centre."""
        half = self.cell_size / 2.0
        return cell_x * self.cell_size + half, cell_y * self.cell_size + half

    # -- Mutation ------------------------------------------------------------

    def deposit(
        self,
        x: float,
        y: float,
        trail_type: TrailType,
        amount: float | None = None,
    ) -> bool:
        """Add trail strength at a world position, saturating at the cap.

        Args:
            x: World x coordinate.
            y: World y coordinate.
            trail_type: Which layer to reinforce.
            amount: Strength to add; the layer's base strength if None.

        Returns:
            True if a cell was reinforced, False for an off-world
            position or a non-positive amount.
        """
        cell = self.to_cell(x, y)
        if cell is None:
            return False
        layer = self.layers[trail_type]
        if amount is None:
            amount = layer.base_strength
        if not amount > 0:
            return False
        cell_x, cell_y = cell
        current = layer.grid[cell_y, cell_x]
        layer.grid[cell_y, cell_x] = min(current + amount, layer.max_strength)
        return True

    def decay_tick(self, current_tick: int) -> bool:
        """Apply one decay step for ``current_tick``.

        Decay runs at most once per tick index: a call whose tick is not
        past the last decayed tick (or falls inside ``decay_interval``)
        leaves the field untouched.

        Returns:
            True if the field decayed.
        """
        last = self.last_decay_tick
        if last is not None and current_tick - last < self.decay_interval:
            return False
        decay_field(self)
        self.last_decay_tick = current_tick
        return True

    def clear_area(self, x: float, y: float, radius: float) -> int:
        """Zero every layer for cells whose centre is within ``radius``.

        Returns:
            Number of non-zero cell values that were cleared.
        """
        if not radius >= 0:
            return 0
        centres_x = (np.arange(self.grid_width) + 0.5) * self.cell_size
        centres_y = (np.arange(self.grid_height) + 0.5) * self.cell_size
        dist_sq = (centres_x[np.newaxis, :] - x) ** 2 + (
            centres_y[:, np.newaxis] - y
        ) ** 2
        mask = dist_sq <= radius * radius

        cleared = 0
        for layer in self.layers.values():
            cleared += int(np.count_nonzero(layer.grid[mask]))
            layer.grid[mask] = 0.0
        return cleared

    def clear_all(self) -> None:
        """Reset every cell of every layer to zero."""
        for layer in self.layers.values():
            layer.grid.fill(0.0)

    # -- Queries -------------------------------------------------------------

    def read(self, x: float, y: float, trail_type: TrailType) -> float:
        """Return the strength at a world position (0.0 off-world)."""
        cell = self.to_cell(x, y)
        if cell is None:
            return 0.0
        cell_x, cell_y = cell
        return float(self.layers[trail_type].grid[cell_y, cell_x])

    def sample_all(self, x: float, y: float) -> dict[TrailType, float]:
        """Return the strength of every trail type at a world position."""
        return {trail_type: self.read(x, y, trail_type) for trail_type in TrailType}

    def sample_gradient(
        self,
        x: float,
        y: float,
        trail_type: TrailType,
        sample_radius: float,
    ) -> list[GradientSample]:
        """Measure a trail around a point along the fixed heading ring.

        Args:
            x: World x coordinate of the sampling agent.
            y: World y coordinate of the sampling agent.
            trail_type: Which trail to measure.
            sample_radius: Distance along each heading to sample at.

        Returns:
            One sample per heading, strongest first (ties keep ring
            order).  Empty only when ``(x, y)`` is off-world.
        """
        if not self.in_bounds(x, y):
            return []
        samples = [
            GradientSample(
                heading=angle,
                dx=cos_a,
                dy=sin_a,
                strength=self.read(
                    x + sample_radius * cos_a,
                    y + sample_radius * sin_a,
                    trail_type,
                ),
            )
            for angle, cos_a, sin_a in self._ring
        ]
        samples.sort(key=lambda s: -s.strength)
        return samples

    def visible_cells(
        self,
        min_strength: float,
        trail_type: TrailType | None = None,
    ) -> Iterator[VisibleCell]:
        """Yield every cell at or above ``min_strength``.

        The scan happens lazily while iterating; call again to re-scan.

        Args:
            min_strength: Inclusive strength threshold.
            trail_type: Restrict the export to a single layer.
        """
        types = [trail_type] if trail_type is not None else list(TrailType)
        for ttype in types:
            grid = self.layers[ttype].grid
            rows, cols = np.nonzero(grid >= min_strength)
            for cell_y, cell_x in zip(rows.tolist(), cols.tolist(), strict=True):
                yield VisibleCell(
                    cell_x=cell_x,
                    cell_y=cell_y,
                    trail_type=ttype,
                    strength=float(grid[cell_y, cell_x]),
                )

    def get_layer(self, trail_type: TrailType) -> NDArray[np.float64]:
        """Return the raw NumPy array for a trail layer."""
        return self.layers[trail_type].grid

    def summary(self) -> dict[str, object]:
        """Aggregate per-layer activity for statistics export."""
        total_cells = self.grid_width * self.grid_height
        by_type: dict[str, dict[str, float | int]] = {}
        active_total = 0
        for ttype, layer in self.layers.items():
            active = layer.grid > 0
            active_cells = int(np.count_nonzero(active))
            total_strength = float(layer.grid.sum())
            by_type[ttype.value] = {
                "activeCells": active_cells,
                "totalStrength": round(total_strength),
                "averageStrength": (
                    round(total_strength / active_cells) if active_cells else 0
                ),
                "maxStrength": round(float(layer.grid.max(initial=0.0))),
            }
            active_total += active_cells
        return {
            "totalCells": total_cells,
            "activeCells": active_total,
            "byType": by_type,
        }
