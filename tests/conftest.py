import os
import struct

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from wadtool.defs import (
    NO_SIDEDEF, NF_SUBSECTOR, ML_BLOCKING, ML_TWOSIDED,
    LevelData, LineDef, Node, Sector, Seg, SideDef, SubSector, Thing, Vertex,
)


def build_wad(lumps, ident=b"PWAD"):
    """Assemble raw WAD bytes from ``[(name, data), ...]`` in order."""
    body = b""
    directory = b""
    offset = 12
    for name, data in lumps:
        directory += struct.pack("<ii8s", offset, len(data), name.encode("ascii"))
        body += data
        offset += len(data)
    return struct.pack("<4sii", ident, len(lumps), offset) + body + directory


@pytest.fixture
def make_wad(tmp_path):
    def _make(lumps, name="test.wad", ident=b"PWAD"):
        path = tmp_path / name
        path.write_bytes(build_wad(lumps, ident))
        return str(path)
    return _make


@pytest.fixture
def two_room_level():
    """Two sectors joined by a two-sided line, with a tiny BSP."""
    vertexes = [
        Vertex(0, 0), Vertex(128, 0), Vertex(256, 0),
        Vertex(256, 128), Vertex(128, 128), Vertex(0, 128),
    ]
    sectors = [
        Sector(0, 128, "FLOOR4_8", "CEIL3_5", 160, 0, 0),
        Sector(-16, 96, "NUKAGE1", "F_SKY1", 255, 7, 3),
    ]
    sidedefs = [
        SideDef(0, 0, "-", "-", "STARTAN2", 0),
        SideDef(0, 0, "-", "-", "STARTAN2", 0),
        SideDef(0, 0, "-", "-", "STARTAN2", 0),
        SideDef(16, -8, "BROWN1", "BROWN1", "-", 0),
        SideDef(0, 0, "STEP1", "STEP1", "-", 1),
        SideDef(0, 0, "-", "-", "COMPTALL", 1),
        SideDef(0, 0, "-", "-", "COMPTALL", 1),
        SideDef(0, 0, "-", "-", "COMPTALL", 1),
    ]
    linedefs = [
        LineDef(1, 0, ML_BLOCKING, 0, 0, 0, NO_SIDEDEF),
        LineDef(0, 5, ML_BLOCKING, 0, 0, 1, NO_SIDEDEF),
        LineDef(5, 4, ML_BLOCKING, 0, 0, 2, NO_SIDEDEF),
        LineDef(4, 1, ML_TWOSIDED, 1, 3, 3, 4),
        LineDef(2, 1, ML_BLOCKING, 0, 0, 5, NO_SIDEDEF),
        LineDef(3, 2, ML_BLOCKING, 0, 0, 6, NO_SIDEDEF),
        LineDef(4, 3, ML_BLOCKING, 0, 0, 7, NO_SIDEDEF),
    ]
    things = [
        Thing(64, 64, 90, 1, 7),
        Thing(192, 64, 180, 3004, 12),
        Thing(200, 100, 0, 2011, 7),
    ]
    segs = [
        Seg(1, 0, -32768, 0, 0, 0),
        Seg(0, 5, 16384, 1, 0, 0),
        Seg(5, 4, 0, 2, 0, 0),
        Seg(4, 1, -16384, 3, 0, 0),
        Seg(1, 4, 16384, 3, 1, 0),
        Seg(2, 1, -32768, 4, 0, 0),
        Seg(3, 2, -16384, 5, 0, 0),
        Seg(4, 3, 0, 6, 0, 0),
    ]
    subsectors = [SubSector(4, 0), SubSector(4, 4)]
    nodes = [
        Node(128, 128, 0, -128,
             128, 0, 128, 256,
             128, 0, 0, 128,
             NF_SUBSECTOR | 1, NF_SUBSECTOR | 0),
    ]
    return LevelData(
        name="MAP01",
        vertexes=vertexes, linedefs=linedefs, sidedefs=sidedefs, sectors=sectors,
        things=things, nodes=nodes, subsectors=subsectors, segs=segs,
    )
