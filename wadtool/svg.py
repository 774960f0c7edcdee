"""Top-down SVG preview of a level: walls in green, player starts in blue."""

import logging
import math

from wadtool.defs import LevelData

log = logging.getLogger(__name__)

SVG_WIDTH = 1200
SVG_HEIGHT = 900
PADDING = 20          # map units around the level bounds
HEADING_LENGTH = 20   # map units


def render_svg(level: LevelData, width: int = SVG_WIDTH, height: int = SVG_HEIGHT) -> str:
    """
    Return an SVG document for *level*.

    Map y grows northwards, SVG y grows down, so y is negated.  Linedefs
    whose vertex indices are out of range are skipped (and reported via
    LevelData.check_references).  Raises ValueError if there is nothing
    to draw.
    """
    if not level.vertexes or not level.linedefs:
        raise ValueError("Cannot generate SVG: no vertexes or linedefs")

    n_verts = len(level.vertexes)
    if any(line.start_vertex >= n_verts or line.end_vertex >= n_verts
           for line in level.linedefs):
        for problem in level.check_references():
            log.warning("%s", problem)

    min_x = min(v.x for v in level.vertexes) - PADDING
    max_x = max(v.x for v in level.vertexes) + PADDING
    min_y = min(-v.y for v in level.vertexes) - PADDING
    max_y = max(-v.y for v in level.vertexes) + PADDING

    scale = min(width / (max_x - min_x), height / (max_y - min_y))
    stroke = 2 / scale
    cx = (min_x + max_x) / 2
    cy = (min_y + max_y) / 2

    parts = [
        '<?xml version="1.0" encoding="UTF-8" standalone="no"?>',
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">',
        '  <rect width="100%" height="100%" fill="black"/>',
        f'  <g transform="translate({width / 2}, {height / 2}) scale({scale}) '
        f'translate({-cx}, {-cy})">',
    ]

    for line in level.linedefs:
        if line.start_vertex >= n_verts or line.end_vertex >= n_verts:
            continue
        v1 = level.vertexes[line.start_vertex]
        v2 = level.vertexes[line.end_vertex]
        parts.append(
            f'    <line x1="{v1.x}" y1="{-v1.y}" x2="{v2.x}" y2="{-v2.y}" '
            f'stroke="#00FF00" stroke-width="{stroke}"/>'
        )

    for thing in level.things:
        if not thing.is_player_start:
            continue
        rad = math.radians(thing.angle)
        hx = thing.x + HEADING_LENGTH * math.cos(rad)
        hy = -thing.y - HEADING_LENGTH * math.sin(rad)
        parts.append(
            f'    <circle cx="{thing.x}" cy="{-thing.y}" r="{8 / scale}" fill="blue"/>'
        )
        parts.append(
            f'    <line x1="{thing.x}" y1="{-thing.y}" x2="{hx:.2f}" y2="{hy:.2f}" '
            f'stroke="blue" stroke-width="{stroke}"/>'
        )

    parts.append("  </g>")
    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def write_svg(level: LevelData, path: str) -> str:
    """Render *level* and save it to *path*.  Returns *path*."""
    svg = render_svg(level)
    with open(path, "w") as f:
        f.write(svg)
    log.info("SVG preview written: %s", path)
    return path
