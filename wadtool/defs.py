"""Shared constants and on-disk record structures for the WAD codec.

Every map lump is a packed array of fixed-width little-endian records.
Each record kind below is a small frozen dataclass that knows its lump
name, its byte layout and how to encode/decode itself, so the reader and
writer can walk all eight kinds generically through ``RECORD_TYPES``.

Index fields (vertex, sidedef, sector, linedef, seg and child numbers)
are stored as 16-bit values but are unsigned: they always decode to
0..65535, never to a negative number.
"""
from __future__ import annotations

import logging
import re
import struct
import warnings
from dataclasses import astuple, dataclass, field, fields
from typing import ClassVar, Optional

from wadtool.errors import ConsistencyWarning

log = logging.getLogger(__name__)

# ─── Archive layout ───

WAD_IDENTS = ("IWAD", "PWAD")
DEFAULT_IDENT = "PWAD"

HEADER_FMT = "<4sii"          # ident, numlumps, infotableofs
HEADER_SIZE = struct.calcsize(HEADER_FMT)        # 12

DIR_ENTRY_FMT = "<ii8s"       # filepos, size, name
DIR_ENTRY_SIZE = struct.calcsize(DIR_ENTRY_FMT)  # 16

NAME_LENGTH = 8

# Map lump names
ML_THINGS = "THINGS"
ML_LINEDEFS = "LINEDEFS"
ML_SIDEDEFS = "SIDEDEFS"
ML_VERTEXES = "VERTEXES"
ML_SEGS = "SEGS"
ML_SSECTORS = "SSECTORS"
ML_NODES = "NODES"
ML_SECTORS = "SECTORS"
ML_REJECT = "REJECT"
ML_BLOCKMAP = "BLOCKMAP"

# Order in which map lumps follow their marker (doomdata.h)
LUMP_ORDER = (
    ML_THINGS,
    ML_LINEDEFS,
    ML_SIDEDEFS,
    ML_VERTEXES,
    ML_SEGS,
    ML_SSECTORS,
    ML_NODES,
    ML_SECTORS,
)

DEFAULT_MAP_NAME = "MAP01"

# Level markers: MAPxx (Doom II) or ExMy (Doom)
MAP_MARKER_RE = re.compile(r"MAP[0-9]{2}")
EPISODE_MARKER_RE = re.compile(r"E[0-9]M[0-9]")

# LineDef flags
ML_BLOCKING = 1
ML_BLOCKMONSTERS = 2
ML_TWOSIDED = 4
ML_DONTPEGTOP = 8
ML_DONTPEGBOTTOM = 16
ML_SECRET = 32
ML_SOUNDBLOCK = 64
ML_DONTDRAW = 128
ML_MAPPED = 256

# "No sidedef" in LineDef.right_sidedef / left_sidedef
NO_SIDEDEF = 0xFFFF

# BSP node child indicator
NF_SUBSECTOR = 0x8000

# Thing types and option flags
THING_PLAYER1_START = 1
MTF_EASY = 1
MTF_NORMAL = 2
MTF_HARD = 4
MTF_AMBUSH = 8
MTF_ALL_SKILLS = MTF_EASY | MTF_NORMAL | MTF_HARD  # 7

# Empty texture slot
NO_TEXTURE = "-"


def is_level_marker(name: str) -> bool:
    """True if *name* is a MAP## or E#M# level marker."""
    name = name.upper()
    return bool(MAP_MARKER_RE.fullmatch(name) or EPISODE_MARKER_RE.fullmatch(name))


# ─── Fixed-width field helpers ───

def encode_name(name: str, length: int = NAME_LENGTH) -> bytes:
    """ASCII-encode *name*, truncated to *length* and NUL-padded."""
    raw = name.encode("ascii", errors="replace")[:length]
    return raw.ljust(length, b"\x00")


def decode_name(raw: bytes) -> str:
    """Convert a NUL/space padded 8-byte name to a Python string."""
    raw = raw.split(b"\x00", 1)[0]
    return raw.decode("ascii", errors="replace").rstrip()


def _to_int16(value: int) -> int:
    # Wrap like a 16-bit store: 0xFFFF -> -1, 40000 -> -25536
    return ((int(value) + 0x8000) & 0xFFFF) - 0x8000


def _to_uint16(value: int) -> int:
    return int(value) & 0xFFFF


# ─── Map records ───

class MapRecord:
    """Base for the fixed-width map lump records.

    Subclasses are dataclasses and set:
        LUMP    lump name the records live in
        FORMAT  struct format, little-endian; ``h`` signed, ``H`` unsigned
                index, ``8s`` texture/flat name
    """

    LUMP: ClassVar[str] = ""
    FORMAT: ClassVar[str] = ""
    SIZE: ClassVar[int] = 0
    _CODES: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.SIZE = struct.calcsize(cls.FORMAT)
        cls._CODES = _field_codes(cls.FORMAT)

    def encode(self) -> bytes:
        """Pack this record into exactly ``SIZE`` bytes."""
        values = []
        for code, value in zip(self._CODES, astuple(self)):
            if code == "h":
                values.append(_to_int16(value))
            elif code == "H":
                values.append(_to_uint16(value))
            else:
                values.append(encode_name(value))
        return struct.pack(self.FORMAT, *values)

    @classmethod
    def decode(cls, data: bytes, offset: int = 0):
        """Unpack one record from *data* at *offset*."""
        values = struct.unpack_from(cls.FORMAT, data, offset)
        return cls(*(decode_name(v) if isinstance(v, bytes) else v for v in values))

    @classmethod
    def decode_all(cls, data: bytes) -> list:
        """Decode every whole record in a lump.

        A trailing partial record is discarded rather than treated as an
        error (floor division of the lump size by ``SIZE``).
        """
        count, extra = divmod(len(data), cls.SIZE)
        if extra:
            log.warning(
                "%s: %d bytes is not a multiple of %d, discarding %d trailing bytes",
                cls.LUMP, len(data), cls.SIZE, extra,
            )
        return [cls.decode(data, i * cls.SIZE) for i in range(count)]

    @classmethod
    def encode_all(cls, records) -> bytes:
        return b"".join(r.encode() for r in records)

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]


def _field_codes(fmt: str) -> tuple[str, ...]:
    """One struct code per field: ``<hh4h8sH`` -> ``h h h h h h 8s H``."""
    codes = []
    for count, code in re.findall(r"(\d*)([a-zA-Z])", fmt):
        if code == "s":
            codes.append(count + code)
        else:
            codes.extend(code * int(count or 1))
    return tuple(codes)


@dataclass(frozen=True)
class Vertex(MapRecord):
    LUMP = ML_VERTEXES
    FORMAT = "<hh"

    x: int
    y: int


@dataclass(frozen=True)
class LineDef(MapRecord):
    LUMP = ML_LINEDEFS
    FORMAT = "<HHhhhHH"

    start_vertex: int
    end_vertex: int
    flags: int = 0
    special_type: int = 0
    sector_tag: int = 0
    right_sidedef: int = NO_SIDEDEF
    left_sidedef: int = NO_SIDEDEF

    @property
    def two_sided(self) -> bool:
        return self.left_sidedef != NO_SIDEDEF


@dataclass(frozen=True)
class SideDef(MapRecord):
    LUMP = ML_SIDEDEFS
    FORMAT = "<hh8s8s8sH"

    x_offset: int
    y_offset: int
    upper_texture: str
    lower_texture: str
    middle_texture: str
    sector: int


@dataclass(frozen=True)
class Sector(MapRecord):
    LUMP = ML_SECTORS
    FORMAT = "<hh8s8shhh"

    floor_height: int
    ceiling_height: int
    floor_texture: str
    ceiling_texture: str
    light_level: int
    special_type: int = 0
    tag: int = 0


@dataclass(frozen=True)
class Thing(MapRecord):
    LUMP = ML_THINGS
    FORMAT = "<hhhhh"

    x: int
    y: int
    angle: int
    type: int
    flags: int

    @property
    def is_player_start(self) -> bool:
        return self.type == THING_PLAYER1_START


@dataclass(frozen=True)
class Node(MapRecord):
    LUMP = ML_NODES
    # partition line, right bbox, left bbox (top, bottom, left, right), children
    FORMAT = "<hhhh4h4hHH"

    x_partition: int
    y_partition: int
    x_change: int
    y_change: int
    right_box_top: int
    right_box_bottom: int
    right_box_left: int
    right_box_right: int
    left_box_top: int
    left_box_bottom: int
    left_box_left: int
    left_box_right: int
    right_child: int
    left_child: int


@dataclass(frozen=True)
class SubSector(MapRecord):
    LUMP = ML_SSECTORS
    FORMAT = "<hH"

    seg_count: int
    first_seg: int


@dataclass(frozen=True)
class Seg(MapRecord):
    LUMP = ML_SEGS
    FORMAT = "<HHhHhh"

    start_vertex: int
    end_vertex: int
    angle: int
    linedef: int
    direction: int
    offset: int


# Lump name -> record type, in canonical lump order
RECORD_TYPES: dict[str, type[MapRecord]] = {
    cls.LUMP: cls
    for cls in sorted(
        (Thing, LineDef, SideDef, Vertex, Seg, SubSector, Node, Sector),
        key=lambda c: LUMP_ORDER.index(c.LUMP),
    )
}


# ─── Level container ───

@dataclass
class LevelData:
    """All map records of one level, in on-disk order (index = position)."""
    name: str = DEFAULT_MAP_NAME
    vertexes: list = field(default_factory=list)
    linedefs: list = field(default_factory=list)
    sidedefs: list = field(default_factory=list)
    sectors: list = field(default_factory=list)
    things: list = field(default_factory=list)
    nodes: list = field(default_factory=list)
    subsectors: list = field(default_factory=list)
    segs: list = field(default_factory=list)

    _ATTRS: ClassVar[dict[str, str]] = {
        ML_THINGS: "things",
        ML_LINEDEFS: "linedefs",
        ML_SIDEDEFS: "sidedefs",
        ML_VERTEXES: "vertexes",
        ML_SEGS: "segs",
        ML_SSECTORS: "subsectors",
        ML_NODES: "nodes",
        ML_SECTORS: "sectors",
    }

    def records(self, lump: str) -> list:
        """The collection stored in lump *lump* (e.g. ``"VERTEXES"``)."""
        return getattr(self, self._ATTRS[lump.upper()])

    def set_records(self, lump: str, records: list) -> None:
        setattr(self, self._ATTRS[lump.upper()], list(records))

    def summary(self) -> dict[str, int]:
        """Record count per lump, in canonical lump order."""
        return {lump: len(self.records(lump)) for lump in LUMP_ORDER}

    @property
    def player_start(self) -> Optional[Thing]:
        for thing in self.things:
            if thing.is_player_start:
                return thing
        return None

    def check_references(self) -> list[str]:
        """
        Report cross references that point past the end of their target
        collection.  Decoding never validates these; consumers that
        dereference indices call this first.  Each problem is also issued
        as a ConsistencyWarning.
        """
        problems = []
        n_verts = len(self.vertexes)
        n_sides = len(self.sidedefs)
        n_sectors = len(self.sectors)
        n_lines = len(self.linedefs)
        n_segs = len(self.segs)

        for i, line in enumerate(self.linedefs):
            for attr in ("start_vertex", "end_vertex"):
                v = getattr(line, attr)
                if v >= n_verts:
                    problems.append(f"LINEDEFS[{i}].{attr}={v} >= {n_verts} vertexes")
            for attr in ("right_sidedef", "left_sidedef"):
                s = getattr(line, attr)
                if s != NO_SIDEDEF and s >= n_sides:
                    problems.append(f"LINEDEFS[{i}].{attr}={s} >= {n_sides} sidedefs")

        for i, side in enumerate(self.sidedefs):
            if side.sector >= n_sectors:
                problems.append(f"SIDEDEFS[{i}].sector={side.sector} >= {n_sectors} sectors")

        for i, seg in enumerate(self.segs):
            for attr in ("start_vertex", "end_vertex"):
                v = getattr(seg, attr)
                if v >= n_verts:
                    problems.append(f"SEGS[{i}].{attr}={v} >= {n_verts} vertexes")
            if seg.linedef >= n_lines:
                problems.append(f"SEGS[{i}].linedef={seg.linedef} >= {n_lines} linedefs")

        for i, ss in enumerate(self.subsectors):
            if ss.seg_count < 0 or ss.first_seg + ss.seg_count > n_segs:
                problems.append(
                    f"SSECTORS[{i}] segs {ss.first_seg}+{ss.seg_count} > {n_segs} segs"
                )

        for problem in problems:
            warnings.warn(f"{self.name}: {problem}", ConsistencyWarning, stacklevel=2)
        return problems
