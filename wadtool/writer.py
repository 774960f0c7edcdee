"""
WAD file writer.

Produces a single-level PWAD:

    header (12 bytes, written last)
    marker lump (zero size, e.g. MAP01)
    THINGS LINEDEFS SIDEDEFS VERTEXES SEGS SSECTORS NODES SECTORS
    directory

Every map lump is written and listed even when its collection is empty,
so engines always see a complete level.  BSP lumps are stored as given;
no node building happens here.
"""

import logging
import os
import struct
from typing import Iterable, Sequence

from wadtool.defs import (
    HEADER_FMT, HEADER_SIZE, WAD_IDENTS, DEFAULT_IDENT, DEFAULT_MAP_NAME,
    ML_THINGS, ML_LINEDEFS, ML_SIDEDEFS, ML_VERTEXES,
    ML_SEGS, ML_SSECTORS, ML_NODES, ML_SECTORS,
    RECORD_TYPES, THING_PLAYER1_START, MTF_ALL_SKILLS,
    LevelData, Thing, is_level_marker,
)
from wadtool.directory import DirectoryEntry, LumpDirectory
from wadtool.errors import StructuralError, WadIOError

log = logging.getLogger(__name__)


def ensure_player_start(things: Iterable[Thing]) -> tuple[list[Thing], bool]:
    """
    Return *things* with a player 1 start appended if none is present,
    and whether one was added.  Several engines refuse to load a map
    without one.  The injected start sits at (0, 0), facing east, on all
    skill levels.
    """
    things = list(things)
    if any(t.type == THING_PLAYER1_START for t in things):
        return things, False
    log.warning("No player 1 start found; injecting a default one at (0, 0)")
    things.append(Thing(x=0, y=0, angle=0, type=THING_PLAYER1_START, flags=MTF_ALL_SKILLS))
    return things, True


class DirectoryBuilder:
    """Accumulates the directory for one write, one entry per lump written."""

    def __init__(self) -> None:
        self.directory = LumpDirectory()

    def add(self, name: str, filepos: int, size: int) -> DirectoryEntry:
        entry = DirectoryEntry(filepos=filepos, size=size, name=name)
        self.directory.append(entry)
        return entry

    def __len__(self) -> int:
        return len(self.directory)


class WadWriter:
    """Writes one level's record collections to a new WAD file at *path*."""

    def __init__(self, path: str, ident: str = DEFAULT_IDENT,
                 map_name: str = DEFAULT_MAP_NAME) -> None:
        if ident not in WAD_IDENTS:
            raise StructuralError(f"WAD identification must be IWAD or PWAD, not {ident!r}")
        if not is_level_marker(map_name):
            raise StructuralError(f"{map_name!r} is not a MAPxx or ExMy level name")
        self.path = path
        self.ident = ident
        self.map_name = map_name.upper()

    def write(
        self,
        vertexes: Sequence,
        linedefs: Sequence,
        sidedefs: Sequence,
        sectors: Sequence,
        things: Sequence,
        nodes: Sequence = (),
        subsectors: Sequence = (),
        segs: Sequence = (),
    ) -> list[DirectoryEntry]:
        """
        Write the archive and return its directory entries (marker first).

        An existing file at the path is replaced.  On an I/O failure a
        WadIOError is raised and whatever was written so far is left in
        place for the caller to deal with.
        """
        lumps = {
            ML_THINGS: things,
            ML_LINEDEFS: linedefs,
            ML_SIDEDEFS: sidedefs,
            ML_VERTEXES: vertexes,
            ML_SEGS: segs,
            ML_SSECTORS: subsectors,
            ML_NODES: nodes,
            ML_SECTORS: sectors,
        }
        lumps = {lump: self._checked(lump, records) for lump, records in lumps.items()}
        lumps[ML_THINGS], _ = ensure_player_start(lumps[ML_THINGS])
        payloads = {lump: RECORD_TYPES[lump].encode_all(records) for lump, records in lumps.items()}

        try:
            if os.path.exists(self.path):
                os.remove(self.path)
            with open(self.path, "wb") as f:
                builder = self._write_body(f, payloads)
        except OSError as e:
            raise WadIOError(self.path, "write", e) from e

        log.info("Wrote %s: %s %s, %d lumps", self.path, self.ident, self.map_name, len(builder))
        return builder.directory.entries

    def _write_body(self, f, payloads: dict[str, bytes]) -> DirectoryBuilder:
        builder = DirectoryBuilder()

        # Header placeholder; the directory offset is only known at the end
        f.write(b"\x00" * HEADER_SIZE)

        builder.add(self.map_name, f.tell(), 0)
        for lump in RECORD_TYPES:
            data = payloads[lump]
            builder.add(lump, f.tell(), len(data))
            f.write(data)
            log.debug("%s: %s %d bytes", self.path, lump, len(data))

        infotableofs = f.tell()
        f.write(builder.directory.encode())

        f.seek(0)
        f.write(struct.pack(HEADER_FMT, self.ident.encode("ascii"), len(builder), infotableofs))
        return builder

    @staticmethod
    def _checked(lump: str, records: Iterable) -> list:
        record_type = RECORD_TYPES[lump]
        records = list(records)
        for i, record in enumerate(records):
            if not isinstance(record, record_type):
                raise TypeError(
                    f"{lump}[{i}] is a {type(record).__name__}, expected {record_type.__name__}"
                )
        return records


def write_wad(path: str, vertexes, linedefs, sidedefs, sectors, things,
              nodes=(), subsectors=(), segs=(), ident: str = DEFAULT_IDENT,
              map_name: str = DEFAULT_MAP_NAME) -> list[DirectoryEntry]:
    """Write a single-level WAD; see WadWriter.write."""
    return WadWriter(path, ident, map_name).write(
        vertexes, linedefs, sidedefs, sectors, things, nodes, subsectors, segs,
    )


def write_level(path: str, level: LevelData, ident: str = DEFAULT_IDENT) -> list[DirectoryEntry]:
    """Write *level*, using its name as the marker when it is a level name."""
    map_name = level.name if is_level_marker(level.name) else DEFAULT_MAP_NAME
    return WadWriter(path, ident, map_name).write(
        level.vertexes, level.linedefs, level.sidedefs, level.sectors,
        level.things, level.nodes, level.subsectors, level.segs,
    )
