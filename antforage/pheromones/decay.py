"""Decay logic for trail layers.

Operates on the raw NumPy arrays inside ``TrailLayer`` objects.
Trails fade in place; there is no diffusion between cells.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from antforage.pheromones.fields import PheromoneField, TrailLayer


def decay_layer(layer: TrailLayer, zero_floor: float = 0.0) -> None:
    """Reduce strengths by the layer's decay rate.

    Applies ``grid *= (1 - decay_rate)`` in-place, then snaps values
    below ``zero_floor`` to exactly 0 so float dust does not linger.
    The result never goes negative and never increases.

    Args:
        layer: The trail layer to decay.
        zero_floor: Strength below which a cell is considered empty.
    """
    if layer.decay_rate > 0:
        layer.grid *= 1.0 - layer.decay_rate
    if zero_floor > 0:
        layer.grid[layer.grid < zero_floor] = 0.0
    np.maximum(layer.grid, 0.0, out=layer.grid)


def decay_field(field: PheromoneField) -> None:
    """Run one decay step on every layer of the field.

    Args:
        field: The complete pheromone field to decay.
    """
    for layer in field.layers.values():
        decay_layer(layer, field.zero_floor)
