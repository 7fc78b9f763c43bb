"""Tests for antforage.simulation.driver and the CLI entry point."""

from __future__ import annotations

from pathlib import Path

from antforage.__main__ import build_simulation, main
from antforage.foraging.coordinator import ForagingCoordinator
from antforage.foraging.events import TickCompleted
from antforage.simulation.config import SimulationConfig
from antforage.simulation.driver import TickDriver


class TestTickDriver:
    """Tests for the fixed-cadence tick loop."""

    def test_step_advances_tick(self, coordinator: ForagingCoordinator) -> None:
        driver = TickDriver(coordinator=coordinator)
        report = driver.step()
        assert report.tick == 0
        assert driver.tick == 1
        assert coordinator.last_tick == 0

    def test_run_multiple_ticks(self, coordinator: ForagingCoordinator) -> None:
        driver = TickDriver(coordinator=coordinator)
        reports = driver.run(ticks=4)
        assert [r.tick for r in reports] == [0, 1, 2, 3]
        assert driver.tick == 4

    def test_run_forever_with_limit(self, coordinator: ForagingCoordinator) -> None:
        driver = TickDriver(coordinator=coordinator)
        assert driver.run_forever(interval=0.0, max_ticks=5) == 5
        assert driver.tick == 5

    def test_stop_from_handler(self, coordinator: ForagingCoordinator) -> None:
        driver = TickDriver(coordinator=coordinator)

        def stop_after_third(event: TickCompleted) -> None:
            if event.tick == 2:
                driver.stop()

        coordinator.events.subscribe(TickCompleted, stop_after_third)
        assert driver.run_forever(interval=0.0) == 3

    def test_stopped_driver_does_not_tick(self, coordinator: ForagingCoordinator) -> None:
        driver = TickDriver(coordinator=coordinator)
        driver.stop()
        assert driver.run_forever(interval=0.0) == 0
        assert coordinator.last_tick is None


class TestEntryPoint:
    """Tests for the CLI wiring (no display required)."""

    def test_pygame_renderer_importable(self) -> None:
        from antforage.ui.pygame_client import PygameRenderer

        assert PygameRenderer is not None

    def test_build_simulation(self) -> None:
        config = SimulationConfig(world_width=300.0, world_height=300.0)
        world, coordinator, driver = build_simulation(config, ants=12)
        with coordinator:
            assert len(coordinator.agents) == 12
            assert "colony-1" in coordinator.colonies
            driver.run(3)
            # Ant records are written back after every tick
            for agent_id, ant in coordinator.agents.items():
                assert world.ants[agent_id] == ant

    def test_headless_run(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "tiny.yaml"
        yaml_file.write_text("seed: 3\nworld_width: 200\nworld_height: 200\ncell_size: 10\n")
        main(["--headless", "--ticks", "5", "--ants", "8", "--config", str(yaml_file)])
