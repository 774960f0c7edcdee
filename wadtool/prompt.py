"""Turn a free-text level prompt into a small playable map.

    prompt  --PromptProcessor-->  LevelSpec  --LevelBuilder-->  LevelData

The only processor is a keyword heuristic.  Processors are picked by name
from PROCESSORS, a fixed table, so adding one means adding a class here.
"""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from wadtool.defs import (
    DEFAULT_MAP_NAME, ML_BLOCKING, NO_SIDEDEF, NO_TEXTURE,
    THING_PLAYER1_START, MTF_ALL_SKILLS,
    LevelData, LineDef, Sector, SideDef, Thing, Vertex,
)

log = logging.getLogger(__name__)

MIN_ROOM_SIZE = 128
MAX_ROOM_SIZE = 4096
DEFAULT_ROOM_SIZE = 384


@dataclass(frozen=True)
class LevelSpec:
    room_size: int = 256          # side of the square room, map units
    floor_height: int = 0
    ceiling_height: int = 128
    floor_texture: str = "FLOOR0_1"
    ceiling_texture: str = "CEIL1_1"
    wall_texture: str = "STARTAN2"
    light: int = 160              # 0-255
    player_angle: int = 0         # degrees, 0 = east


class PromptProcessor(Protocol):
    def process(self, prompt: str) -> LevelSpec:
        ...


# (keywords, value) pairs, first hit wins
_LIGHT_RULES = [
    (("dark", "darkness", "dim", "gloom", "gloomy"), 96),
    (("bright", "shiny", "sunny"), 224),
]
_WALL_RULES = [
    (("tech", "base", "computer"), "STARTAN2"),
    (("hell", "flesh", "gore"), "SKINFACE"),
    (("stone", "ruin", "castle"), "STONE2"),
]
_FLOOR_RULES = [
    (("lava", "fire"), "LAVA1"),
    (("water", "pool"), "FWATER1"),
]
_CEILING_RULES = [
    (("sky", "outdoor"), "F_SKY1"),
]
_ANGLE_RULES = [
    (("north",), 90),
    (("east",), 0),
    (("south",), 270),
    (("west",), 180),
]

_ROOM_SIZE_RE = re.compile(r"(?:^|\s)([1-9][0-9]{1,3})(?=\W|$)")


def _keyword_re(keywords) -> re.Pattern:
    # whole words, optionally plural: "pools" matches, "basement" does not
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})s?\b")


def _match(text: str, rules, default):
    for keywords, value in rules:
        if _keyword_re(keywords).search(text):
            return value
    return default


class KeywordPromptProcessor:
    """Derives size, lighting, textures and facing from words in the prompt."""

    def process(self, prompt: str) -> LevelSpec:
        lower = prompt.lower()

        m = _ROOM_SIZE_RE.search(lower)
        if m:
            room_size = min(max(int(m.group(1)), MIN_ROOM_SIZE), MAX_ROOM_SIZE)
        else:
            room_size = DEFAULT_ROOM_SIZE

        spec = LevelSpec(
            room_size=room_size,
            floor_texture=_match(lower, _FLOOR_RULES, "FLOOR0_1"),
            ceiling_texture=_match(lower, _CEILING_RULES, "CEIL1_1"),
            wall_texture=_match(lower, _WALL_RULES, "STARTAN2"),
            light=_match(lower, _LIGHT_RULES, 160),
            player_angle=_match(lower, _ANGLE_RULES, 0),
        )
        log.debug("Prompt processed into %s", spec)
        return spec


PROCESSORS: dict[str, type] = {
    "keyword": KeywordPromptProcessor,
}


def get_processor(name: str = "keyword") -> PromptProcessor:
    try:
        return PROCESSORS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown prompt processor {name!r} (choose from {', '.join(PROCESSORS)})"
        ) from None


class LevelBuilder:
    """Builds a single square room from a LevelSpec."""

    @staticmethod
    def from_spec(spec: LevelSpec, name: str = DEFAULT_MAP_NAME) -> LevelData:
        half = max(spec.room_size // 2, 64)

        # Square centred on the origin, counter-clockwise
        vertexes = [
            Vertex(-half, -half),
            Vertex(half, -half),
            Vertex(half, half),
            Vertex(-half, half),
        ]

        sectors = [Sector(
            floor_height=spec.floor_height,
            ceiling_height=spec.ceiling_height,
            floor_texture=spec.floor_texture[:8],
            ceiling_texture=spec.ceiling_texture[:8],
            light_level=spec.light,
        )]

        # One sidedef per wall (south, east, north, west), all facing sector 0
        sidedefs = [
            SideDef(0, 0, NO_TEXTURE, NO_TEXTURE, spec.wall_texture[:8], 0)
            for _ in range(4)
        ]

        # Clockwise walls (v1->v0, v2->v1, ...) so the room is on the right side
        linedefs = [
            LineDef((i + 1) % 4, i, flags=ML_BLOCKING,
                    right_sidedef=i, left_sidedef=NO_SIDEDEF)
            for i in range(4)
        ]

        things = [Thing(0, 0, spec.player_angle, THING_PLAYER1_START, MTF_ALL_SKILLS)]

        return LevelData(
            name=name,
            vertexes=vertexes,
            linedefs=linedefs,
            sidedefs=sidedefs,
            sectors=sectors,
            things=things,
        )
