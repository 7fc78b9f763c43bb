"""Pygame 2D viewer for the foraging simulation.

Renders the pheromone overlay (from the field's visible-cell export),
resource nodes, colonies and foragers.  The simulation steps at a
configurable tick rate while the display refreshes at the Pygame frame
rate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import pygame

if TYPE_CHECKING:
    from antforage.foraging.coordinator import ForagingCoordinator
    from antforage.simulation.driver import TickDriver
    from antforage.world.world import InMemoryWorld

from antforage.colony.ant import ForagerState
from antforage.pheromones.fields import TrailType

# Colour palette
_BG = (30, 20, 10)
_NEST = (140, 100, 60)
_RESOURCE = (60, 200, 40)
_DEPLETED = (70, 70, 70)

_ANT_COLOURS: dict[ForagerState, tuple[int, int, int]] = {
    ForagerState.IDLE: (180, 180, 180),
    ForagerState.SEEKING: (100, 200, 100),
    ForagerState.RETURNING: (255, 200, 50),
}

_TRAIL_COLOURS: dict[TrailType, tuple[int, int, int]] = {
    TrailType.FOOD_TRAIL: (76, 175, 80),
    TrailType.HOME_TRAIL: (33, 150, 243),
    TrailType.EXPLORATION_TRAIL: (255, 152, 0),
    TrailType.DANGER_TRAIL: (244, 67, 54),
}


class PygameRenderer:
    """Renders a running coordinator into a Pygame window.

    Attributes:
        driver: Tick driver advancing the coordinator.
        world: In-memory world holding the resource nodes.
        scale: Pixels per world unit.
        screen: The Pygame display surface.
    """

    # Speed presets: ticks per second at 30 fps
    _SPEED_STEPS: ClassVar[list[float]] = [1.0, 3.0, 5.0, 10.0, 30.0, 60.0, 120.0]

    def __init__(
        self,
        driver: TickDriver,
        world: InMemoryWorld,
        window_size: int = 800,
        ticks_per_second: float = 10.0,
    ) -> None:
        """Initialise the renderer.

        Args:
            driver: Tick driver wrapping the coordinator to render.
            world: World whose resource nodes are drawn.
            window_size: Pixel size of the longer world side.
            ticks_per_second: Simulation ticks per real-time second.
        """
        self.driver = driver
        self.world = world
        self.ticks_per_second = ticks_per_second
        self._speed_index = min(
            range(len(self._SPEED_STEPS)),
            key=lambda i: abs(self._SPEED_STEPS[i] - ticks_per_second),
        )
        self._tick_accumulator = 0.0

        self.scale = window_size / max(world.width, world.height)
        self._map_w = int(world.width * self.scale)
        self._map_h = int(world.height * self.scale)
        self._panel_width = 240

        pygame.init()
        self.screen = pygame.display.set_mode((self._map_w + self._panel_width, self._map_h))
        pygame.display.set_caption("antforage")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        self.paused = False

    @property
    def coordinator(self) -> ForagingCoordinator:
        return self.driver.coordinator

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step sim, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0
            self._handle_events()
            if not self.paused:
                self._tick_accumulator += self.ticks_per_second * dt
                steps = int(self._tick_accumulator)
                self._tick_accumulator -= steps
                for _ in range(steps):
                    self.driver.step()
            self._draw()

        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events.

        Left click places a food marker, right click clears an area.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._speed_index = min(len(self._SPEED_STEPS) - 1, self._speed_index + 1)
                    self.ticks_per_second = self._SPEED_STEPS[self._speed_index]
                elif event.key == pygame.K_MINUS:
                    self._speed_index = max(0, self._speed_index - 1)
                    self.ticks_per_second = self._SPEED_STEPS[self._speed_index]
            elif event.type == pygame.MOUSEBUTTONDOWN:
                px, py = event.pos
                if px >= self._map_w:
                    continue
                x, y = px / self.scale, py / self.scale
                if event.button == 1:
                    self.coordinator.place_scent_marker(x, y, TrailType.FOOD_TRAIL)
                elif event.button == 3:
                    self.coordinator.clear_pheromone_area(x, y, radius=40.0)

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_trail_overlay()
        self._draw_resources()
        self._draw_colonies()
        self._draw_ants()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_trail_overlay(self) -> None:
        """Draw every visible trail cell as a translucent square."""
        pheromones = self.coordinator.pheromones
        size = max(1, int(pheromones.cell_size * self.scale))
        overlay = pygame.Surface((self._map_w, self._map_h), pygame.SRCALPHA)
        for cell in pheromones.visible_cells(min_strength=1.0):
            cap = pheromones.layers[cell.trail_type].max_strength
            alpha = int(min(cell.strength / cap, 1.0) * 120)
            left = int(cell.cell_x * pheromones.cell_size * self.scale)
            top = int(cell.cell_y * pheromones.cell_size * self.scale)
            pygame.draw.rect(
                overlay,
                (*_TRAIL_COLOURS[cell.trail_type], alpha),
                (left, top, size, size),
            )
        self.screen.blit(overlay, (0, 0))

    def _draw_resources(self) -> None:
        """Draw resource nodes; radius grows with quantity."""
        for node in self.world.resources.values():
            colour = _DEPLETED if node.is_depleted else _RESOURCE
            radius = 2 + min(node.quantity, 60) // 15
            centre = (int(node.x * self.scale), int(node.y * self.scale))
            pygame.draw.circle(self.screen, colour, centre, radius)

    def _draw_colonies(self) -> None:
        radius = max(3, int(self.coordinator.config.colony_radius * self.scale))
        for colony in self.coordinator.colonies.values():
            centre = (int(colony.x * self.scale), int(colony.y * self.scale))
            pygame.draw.circle(self.screen, _NEST, centre, radius)

    def _draw_ants(self) -> None:
        """Draw each ant as a small dot coloured by state."""
        for ant in self.coordinator.agents.values():
            colour = _ANT_COLOURS.get(ant.state, (200, 200, 200))
            centre = (int(ant.x * self.scale), int(ant.y * self.scale))
            pygame.draw.circle(self.screen, colour, centre, 2)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self._map_w + 10
        y = 10
        stats = self.coordinator.get_statistics()

        lines = [
            f"Tick: {self.driver.tick}",
            f"Speed: {self.ticks_per_second:.1f} t/s",
            f"{'PAUSED' if self.paused else 'RUNNING'}",
            "",
            f"Ants: {stats.agents_total}",
        ]
        lines += [f"  {state}: {count}" for state, count in stats.by_state.items()]
        lines += [
            f"Carrying: {stats.carrying_current}/{stats.carrying_capacity}",
            f"Nodes cached: {stats.map_nodes}",
            "",
            "--- Storage ---",
        ]
        for colony in self.coordinator.colonies.values():
            lines.append(f"Colony {colony.colony_id}")
            lines += [f"  {rtype}: {qty}" for rtype, qty in sorted(colony.storage.items())]
        lines += [
            "",
            "--- Controls ---",
            "SPACE: pause",
            "+/-: speed",
            "L-click: food marker",
            "R-click: clear trails",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, (200, 200, 200))
            self.screen.blit(surf, (panel_x, y))
            y += 18
