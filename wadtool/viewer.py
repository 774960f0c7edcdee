"""Top-down level viewer (automap style) built on pygame.

render_map() draws onto an off-screen Surface and needs no display, so it
also backs save_snapshot().  Viewer opens a window:

    arrows   pan
    + / -    zoom
    0        re-fit the whole level
    ESC      quit
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import pygame

from wadtool.defs import LevelData

log = logging.getLogger(__name__)

SCREENWIDTH = 1024
SCREENHEIGHT = 768
PADDING = 20  # screen pixels around the fitted level

BACKGROUND = (0, 0, 0)
WALL_COLOR = (252, 0, 0)         # one-sided
TWOSIDED_COLOR = (188, 120, 72)
THING_COLOR = (0, 200, 0)
PLAYER_COLOR = (255, 255, 255)
HUD_COLOR = (255, 255, 0)

PAN_STEP = 32      # pixels per key press
ZOOM_STEP = 1.25
FPS = 35


@dataclass
class MapView:
    """Map-to-screen transform: uniform scale about a map-space centre."""
    width: int
    height: int
    scale: float = 1.0
    center_x: float = 0.0
    center_y: float = 0.0

    @classmethod
    def fit(cls, level: LevelData, width: int, height: int) -> "MapView":
        """View that shows every vertex with PADDING pixels to spare."""
        if not level.vertexes:
            return cls(width, height)
        min_x = min(v.x for v in level.vertexes)
        max_x = max(v.x for v in level.vertexes)
        min_y = min(v.y for v in level.vertexes)
        max_y = max(v.y for v in level.vertexes)
        span_x = max(max_x - min_x, 1)
        span_y = max(max_y - min_y, 1)
        scale = min((width - 2 * PADDING) / span_x, (height - 2 * PADDING) / span_y)
        return cls(width, height, max(scale, 1e-6),
                   (min_x + max_x) / 2, (min_y + max_y) / 2)

    def to_screen(self, x: float, y: float) -> tuple[int, int]:
        # map y grows north, screen y grows down
        sx = self.width / 2 + (x - self.center_x) * self.scale
        sy = self.height / 2 - (y - self.center_y) * self.scale
        return round(sx), round(sy)

    def to_map(self, sx: float, sy: float) -> tuple[float, float]:
        x = (sx - self.width / 2) / self.scale + self.center_x
        y = (self.height / 2 - sy) / self.scale + self.center_y
        return x, y

    def pan(self, dx_pixels: float, dy_pixels: float) -> None:
        self.center_x += dx_pixels / self.scale
        self.center_y -= dy_pixels / self.scale

    def zoom(self, factor: float) -> None:
        self.scale *= factor


def draw_level(surface: pygame.Surface, level: LevelData, view: MapView) -> None:
    """Draw walls and things of *level* onto *surface*."""
    surface.fill(BACKGROUND)
    n_verts = len(level.vertexes)

    for line in level.linedefs:
        if line.start_vertex >= n_verts or line.end_vertex >= n_verts:
            continue
        v1 = level.vertexes[line.start_vertex]
        v2 = level.vertexes[line.end_vertex]
        color = TWOSIDED_COLOR if line.two_sided else WALL_COLOR
        pygame.draw.line(surface, color, view.to_screen(v1.x, v1.y), view.to_screen(v2.x, v2.y))

    radius = max(2, round(16 * view.scale))
    for thing in level.things:
        pos = view.to_screen(thing.x, thing.y)
        if thing.is_player_start:
            rad = math.radians(thing.angle)
            tip = view.to_screen(thing.x + 32 * math.cos(rad), thing.y + 32 * math.sin(rad))
            pygame.draw.circle(surface, PLAYER_COLOR, pos, radius, 1)
            pygame.draw.line(surface, PLAYER_COLOR, pos, tip)
        else:
            pygame.draw.circle(surface, THING_COLOR, pos, radius, 1)


def render_map(level: LevelData, size: tuple[int, int] = (SCREENWIDTH, SCREENHEIGHT)) -> pygame.Surface:
    """Off-screen rendering of the whole level, fitted to *size*."""
    n_verts = len(level.vertexes)
    if any(line.start_vertex >= n_verts or line.end_vertex >= n_verts
           for line in level.linedefs):
        for problem in level.check_references():
            log.warning("%s", problem)
    surface = pygame.Surface(size)
    draw_level(surface, level, MapView.fit(level, *size))
    return surface


def save_snapshot(level: LevelData, path: str,
                  size: tuple[int, int] = (SCREENWIDTH, SCREENHEIGHT)) -> str:
    """Render *level* and save it as an image (format from the extension)."""
    pygame.image.save(render_map(level, size), path)
    log.info("Map snapshot written: %s", path)
    return path


class Viewer:
    """Interactive window.  Create once, then call viewer.run()."""

    def __init__(self, level: LevelData, width: int = SCREENWIDTH, height: int = SCREENHEIGHT):
        pygame.init()
        self.level = level
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption(f"WAD Tool - {level.name or 'level'}")

        self.view = MapView.fit(level, width, height)
        self.clock = pygame.time.Clock()
        self.running = True

        self._hud_font = pygame.font.SysFont("monospace", 16)

    def _handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_LEFT:
            self.view.pan(-PAN_STEP, 0)
        elif key == pygame.K_RIGHT:
            self.view.pan(PAN_STEP, 0)
        elif key == pygame.K_UP:
            self.view.pan(0, -PAN_STEP)
        elif key == pygame.K_DOWN:
            self.view.pan(0, PAN_STEP)
        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.view.zoom(ZOOM_STEP)
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self.view.zoom(1 / ZOOM_STEP)
        elif key == pygame.K_0:
            self.view = MapView.fit(self.level, self.view.width, self.view.height)

    def run(self) -> None:
        """Event loop.  Returns when the window is closed."""
        try:
            while self.running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self._handle_key(event.key)

                draw_level(self.screen, self.level, self.view)
                self._draw_hud()
                pygame.display.flip()
                self.clock.tick(FPS)
        finally:
            pygame.quit()

    def _draw_hud(self) -> None:
        """Zoom and map position under the mouse."""
        mx, my = self.view.to_map(*pygame.mouse.get_pos())
        text = f"{self.level.name}  zoom {self.view.scale:6.3f}  X {mx:7.0f}  Y {my:7.0f}"
        surf = self._hud_font.render(text, True, HUD_COLOR)
        self.screen.blit(surf, (5, 5))
