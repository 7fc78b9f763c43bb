"""Tests for antforage.pheromones — field, decay, sampling, export."""

import math

import numpy as np
import pytest

from antforage.errors import ConfigurationError
from antforage.pheromones.decay import decay_layer
from antforage.pheromones.fields import (
    STRENGTH_CAP,
    PheromoneField,
    TrailLayer,
    TrailType,
)


def _total(field: PheromoneField) -> float:
    return sum(float(layer.grid.sum()) for layer in field.layers.values())


class TestPheromoneField:
    """Tests for PheromoneField setup and basic operations."""

    def test_all_layers_created(self, small_field: PheromoneField) -> None:
        for ttype in TrailType:
            assert ttype in small_field.layers
            assert small_field.get_layer(ttype).shape == (10, 10)

    def test_initial_strength_zero(self, small_field: PheromoneField) -> None:
        for layer in small_field.layers.values():
            assert np.all(layer.grid == 0.0)

    def test_grid_rounds_up_partial_cells(self) -> None:
        field = PheromoneField(width=100.0, height=50.0, cell_size=16.0)
        assert (field.grid_width, field.grid_height) == (7, 4)

    @pytest.mark.parametrize(
        ("width", "height", "cell_size"),
        [(0.0, 10.0, 1.0), (10.0, -1.0, 1.0), (10.0, 10.0, 0.0), (10.0, 10.0, -2.0)],
    )
    def test_invalid_dimensions_fail_fast(
        self,
        width: float,
        height: float,
        cell_size: float,
    ) -> None:
        with pytest.raises(ConfigurationError):
            PheromoneField(width=width, height=height, cell_size=cell_size)

    def test_deposit_and_read(self, small_field: PheromoneField) -> None:
        assert small_field.deposit(20.0, 40.0, TrailType.FOOD_TRAIL, 12.5)
        assert small_field.read(20.0, 40.0, TrailType.FOOD_TRAIL) == 12.5
        # Same cell, different point inside it
        assert small_field.read(31.9, 47.0, TrailType.FOOD_TRAIL) == 12.5
        assert small_field.read(20.0, 40.0, TrailType.HOME_TRAIL) == 0.0

    def test_deposit_accumulates(self, small_field: PheromoneField) -> None:
        small_field.deposit(5.0, 5.0, TrailType.HOME_TRAIL, 40.0)
        small_field.deposit(6.0, 7.0, TrailType.HOME_TRAIL, 30.0)
        assert small_field.read(5.0, 5.0, TrailType.HOME_TRAIL) == 70.0

    def test_deposit_clamps_at_cap(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 255.0)
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 100.0)
        assert small_field.read(10.0, 10.0, TrailType.FOOD_TRAIL) == 255.0

    def test_home_trail_capped_at_200(self, small_field: PheromoneField) -> None:
        assert small_field.layers[TrailType.HOME_TRAIL].max_strength == 200.0
        small_field.deposit(10.0, 10.0, TrailType.HOME_TRAIL, 255.0)
        assert small_field.read(10.0, 10.0, TrailType.HOME_TRAIL) == 200.0

    def test_deposit_sequence_never_exceeds_cap(
        self,
        small_field: PheromoneField,
        rng: np.random.Generator,
    ) -> None:
        for _ in range(500):
            small_field.deposit(
                float(rng.uniform(0, 160)),
                float(rng.uniform(0, 160)),
                TrailType.DANGER_TRAIL,
                float(rng.uniform(0, 200)),
            )
        assert small_field.get_layer(TrailType.DANGER_TRAIL).max() <= STRENGTH_CAP

    def test_layer_specific_cap(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.EXPLORATION_TRAIL, 250.0)
        assert small_field.read(10.0, 10.0, TrailType.EXPLORATION_TRAIL) == 100.0

    def test_default_amount_is_base_strength(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.HOME_TRAIL)
        assert small_field.read(10.0, 10.0, TrailType.HOME_TRAIL) == 80.0

    def test_non_positive_amount_ignored(self, small_field: PheromoneField) -> None:
        assert not small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, -5.0)
        assert _total(small_field) == 0.0

    @pytest.mark.parametrize(
        ("x", "y"),
        [(-0.1, 10.0), (10.0, -3.0), (160.0, 10.0), (10.0, 160.0), (1e9, 1e9), (math.nan, 1.0)],
    )
    def test_out_of_bounds_is_silent_noop(
        self,
        small_field: PheromoneField,
        x: float,
        y: float,
    ) -> None:
        assert small_field.deposit(x, y, TrailType.FOOD_TRAIL, 50.0) is False
        assert small_field.read(x, y, TrailType.FOOD_TRAIL) == 0.0
        assert small_field.sample_gradient(x, y, TrailType.FOOD_TRAIL, 5.0) == []
        assert _total(small_field) == 0.0

    def test_configure_layer_rejects_cap_above_255(
        self,
        small_field: PheromoneField,
    ) -> None:
        with pytest.raises(ConfigurationError):
            small_field.configure_layer(TrailType.FOOD_TRAIL, max_strength=300.0)

    def test_configure_layer_rejects_bad_rate(self, small_field: PheromoneField) -> None:
        with pytest.raises(ConfigurationError):
            small_field.configure_layer(TrailType.FOOD_TRAIL, decay_rate=1.5)

    def test_sample_all(self, small_field: PheromoneField) -> None:
        small_field.deposit(50.0, 50.0, TrailType.FOOD_TRAIL, 10.0)
        small_field.deposit(50.0, 50.0, TrailType.DANGER_TRAIL, 20.0)
        values = small_field.sample_all(50.0, 50.0)
        assert values[TrailType.FOOD_TRAIL] == 10.0
        assert values[TrailType.DANGER_TRAIL] == 20.0
        assert values[TrailType.HOME_TRAIL] == 0.0
        assert set(values) == set(TrailType)

    def test_parse_trail_type(self) -> None:
        assert TrailType.parse("FOOD_TRAIL") is TrailType.FOOD_TRAIL
        assert TrailType.parse("home_trail") is TrailType.HOME_TRAIL
        with pytest.raises(ValueError):
            TrailType.parse("honey_trail")


class TestDecay:
    """Tests for per-tick exponential decay."""

    def test_decay_layer_reduces_strength(self) -> None:
        layer = TrailLayer(
            trail_type=TrailType.FOOD_TRAIL,
            grid=np.full((4, 4), 50.0),
            decay_rate=0.1,
        )
        decay_layer(layer)
        assert np.allclose(layer.grid, 45.0)

    def test_ten_percent_of_100_is_90(self, small_field: PheromoneField) -> None:
        small_field.configure_layer(TrailType.FOOD_TRAIL, decay_rate=0.1)
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 100.0)
        assert small_field.decay_tick(1)
        assert small_field.read(10.0, 10.0, TrailType.FOOD_TRAIL) == pytest.approx(90.0)

    def test_food_decays_faster_than_home(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 100.0)
        small_field.deposit(10.0, 10.0, TrailType.HOME_TRAIL, 100.0)
        small_field.decay_tick(1)
        food = small_field.read(10.0, 10.0, TrailType.FOOD_TRAIL)
        home = small_field.read(10.0, 10.0, TrailType.HOME_TRAIL)
        assert food < home < 100.0

    def test_decay_is_idempotent_per_tick(self, small_field: PheromoneField) -> None:
        small_field.configure_layer(TrailType.FOOD_TRAIL, decay_rate=0.1)
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 100.0)
        assert small_field.decay_tick(5)
        assert not small_field.decay_tick(5)
        assert not small_field.decay_tick(4)
        assert small_field.read(10.0, 10.0, TrailType.FOOD_TRAIL) == pytest.approx(90.0)
        assert small_field.decay_tick(6)
        assert small_field.read(10.0, 10.0, TrailType.FOOD_TRAIL) == pytest.approx(81.0)

    def test_decay_interval(self) -> None:
        field = PheromoneField(width=32.0, height=32.0, cell_size=16.0, decay_interval=5)
        field.deposit(1.0, 1.0, TrailType.FOOD_TRAIL, 100.0)
        assert field.decay_tick(0)
        assert not field.decay_tick(3)
        assert field.decay_tick(5)

    def test_weak_cells_snap_to_zero(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 0.1)
        small_field.decay_tick(1)
        assert small_field.read(10.0, 10.0, TrailType.FOOD_TRAIL) == 0.0

    def test_decay_is_monotone_and_non_negative(
        self,
        small_field: PheromoneField,
        rng: np.random.Generator,
    ) -> None:
        for ttype in TrailType:
            small_field.get_layer(ttype)[:] = rng.uniform(0, 255, size=(10, 10))
        for tick in range(1, 30):
            before = {t: small_field.get_layer(t).copy() for t in TrailType}
            small_field.decay_tick(tick)
            for ttype in TrailType:
                after = small_field.get_layer(ttype)
                assert np.all(after <= before[ttype])
                assert np.all(after >= 0.0)


class TestGradient:
    """Tests for ring sampling around a point."""

    def test_strongest_heading_first(self, small_field: PheromoneField) -> None:
        # Agent in cell (5, 5); the east sample lands in cell (6, 5)
        small_field.deposit(100.0, 85.0, TrailType.FOOD_TRAIL, 200.0)
        samples = small_field.sample_gradient(80.0, 80.0, TrailType.FOOD_TRAIL, 16.0)
        assert len(samples) == 8
        assert samples[0].heading == 0.0
        assert samples[0].dx == pytest.approx(1.0)
        assert samples[0].dy == pytest.approx(0.0)
        assert samples[0].strength == 200.0
        assert all(s.strength == 0.0 for s in samples[1:])

    def test_sorted_descending(
        self,
        small_field: PheromoneField,
        rng: np.random.Generator,
    ) -> None:
        small_field.get_layer(TrailType.HOME_TRAIL)[:] = rng.uniform(0, 255, size=(10, 10))
        samples = small_field.sample_gradient(80.0, 80.0, TrailType.HOME_TRAIL, 20.0)
        strengths = [s.strength for s in samples]
        assert strengths == sorted(strengths, reverse=True)

    def test_near_edge_samples_off_world_as_zero(
        self,
        small_field: PheromoneField,
    ) -> None:
        small_field.get_layer(TrailType.FOOD_TRAIL)[:] = 50.0
        samples = small_field.sample_gradient(1.0, 1.0, TrailType.FOOD_TRAIL, 16.0)
        assert len(samples) == 8
        assert any(s.strength == 0.0 for s in samples)
        assert any(s.strength == 50.0 for s in samples)

    def test_sixteen_headings(self) -> None:
        field = PheromoneField(width=64.0, height=64.0, cell_size=4.0, headings=16)
        samples = field.sample_gradient(32.0, 32.0, TrailType.FOOD_TRAIL, 8.0)
        assert len(samples) == 16
        headings = sorted(s.heading for s in samples)
        assert headings[1] == pytest.approx(2 * math.pi / 16)


class TestVisibleCells:
    """Tests for the visualization export."""

    def test_filters_by_threshold(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 50.0)
        small_field.deposit(40.0, 10.0, TrailType.FOOD_TRAIL, 5.0)
        small_field.deposit(40.0, 40.0, TrailType.HOME_TRAIL, 20.0)
        cells = list(small_field.visible_cells(min_strength=20.0))
        assert {(c.cell_x, c.cell_y, c.trail_type) for c in cells} == {
            (0, 0, TrailType.FOOD_TRAIL),
            (2, 2, TrailType.HOME_TRAIL),
        }

    def test_single_type(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 50.0)
        small_field.deposit(40.0, 40.0, TrailType.HOME_TRAIL, 50.0)
        cells = list(small_field.visible_cells(10.0, TrailType.HOME_TRAIL))
        assert [c.trail_type for c in cells] == [TrailType.HOME_TRAIL]

    def test_restartable(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 50.0)
        assert len(list(small_field.visible_cells(1.0))) == 1
        small_field.deposit(40.0, 10.0, TrailType.FOOD_TRAIL, 50.0)
        assert len(list(small_field.visible_cells(1.0))) == 2

    def test_to_dict(self, small_field: PheromoneField) -> None:
        small_field.deposit(20.0, 40.0, TrailType.FOOD_TRAIL, 33.0)
        (cell,) = small_field.visible_cells(1.0)
        assert cell.to_dict() == {
            "cellX": 1,
            "cellY": 2,
            "type": "food_trail",
            "strength": 33.0,
        }


class TestClearing:
    """Tests for area and full clearing."""

    def test_clear_area_only_inside_radius(self, small_field: PheromoneField) -> None:
        for ttype in (TrailType.FOOD_TRAIL, TrailType.HOME_TRAIL):
            small_field.get_layer(ttype)[:] = 50.0

        cleared = small_field.clear_area(80.0, 80.0, 24.0)

        inside = 0
        for cy in range(10):
            for cx in range(10):
                centre_x, centre_y = small_field.cell_center(cx, cy)
                within = math.hypot(centre_x - 80.0, centre_y - 80.0) <= 24.0
                inside += within
                for ttype in TrailType:
                    value = small_field.get_layer(ttype)[cy, cx]
                    if within:
                        assert value == 0.0
                    elif ttype in (TrailType.FOOD_TRAIL, TrailType.HOME_TRAIL):
                        assert value == 50.0
        assert inside > 0
        assert cleared == inside * 2

    def test_clear_area_off_world_clears_nothing(
        self,
        small_field: PheromoneField,
    ) -> None:
        small_field.get_layer(TrailType.FOOD_TRAIL)[:] = 50.0
        assert small_field.clear_area(-500.0, -500.0, 10.0) == 0
        assert np.all(small_field.get_layer(TrailType.FOOD_TRAIL) == 50.0)

    def test_clear_all(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 50.0)
        small_field.deposit(90.0, 10.0, TrailType.DANGER_TRAIL, 50.0)
        small_field.clear_all()
        assert _total(small_field) == 0.0


class TestSummary:
    def test_summary_counts(self, small_field: PheromoneField) -> None:
        small_field.deposit(10.0, 10.0, TrailType.FOOD_TRAIL, 100.0)
        small_field.deposit(40.0, 10.0, TrailType.FOOD_TRAIL, 50.0)
        summary = small_field.summary()
        assert summary["totalCells"] == 100
        assert summary["activeCells"] == 2
        food = summary["byType"]["food_trail"]
        assert food == {
            "activeCells": 2,
            "totalStrength": 150,
            "averageStrength": 75,
            "maxStrength": 100,
        }
        assert summary["byType"]["home_trail"]["activeCells"] == 0
