"""
WAD file reader and level loader.

WAD header layout (12 bytes):
    4s  identification  "IWAD" or "PWAD"
    i   numlumps
    i   infotableofs

followed somewhere in the file by ``numlumps`` 16-byte directory entries
(see wadtool.directory).  A level is a zero-size marker lump (MAP01,
E1M1, ...) followed by its map lumps; the eight record lumps are decoded
with the codecs in wadtool.defs, anything else (REJECT, BLOCKMAP,
BEHAVIOR, ...) is skipped.
"""

import logging
import struct
from typing import Optional

from wadtool.defs import (
    HEADER_FMT, HEADER_SIZE, DIR_ENTRY_SIZE, WAD_IDENTS,
    RECORD_TYPES, LevelData,
)
from wadtool.directory import DirectoryEntry, LumpDirectory
from wadtool.errors import StructuralError, WadIOError

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# WAD file reader
# ---------------------------------------------------------------------------

class WAD:
    """
    Opens a WAD file and provides lump access by name or index.

    The whole file is read into memory and the handle closed before the
    constructor returns, so a WAD object holds no open file.

    Raises WadIOError if the file cannot be read and StructuralError if
    the header or directory is unusable.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise WadIOError(path, "read", e) from e
        self._data = data

        if len(data) < HEADER_SIZE:
            raise StructuralError(
                f"{path}: file is {len(data)} bytes, too short for a WAD header"
            )

        ident, numlumps, infotableofs = struct.unpack_from(HEADER_FMT, data, 0)

        if ident not in (i.encode("ascii") for i in WAD_IDENTS):
            raise StructuralError(
                f"{path}: not a valid WAD file, identification is {ident!r}"
            )
        if numlumps < 0:
            raise StructuralError(f"{path}: negative lump count {numlumps}")
        if infotableofs < 0 or infotableofs + numlumps * DIR_ENTRY_SIZE > len(data):
            raise StructuralError(
                f"{path}: directory of {numlumps} entries at offset {infotableofs} "
                f"lies outside the {len(data)}-byte file"
            )

        self.ident = ident.decode("ascii")
        self.numlumps = numlumps
        self.infotableofs = infotableofs
        self.directory = LumpDirectory.decode(data[infotableofs:], numlumps)
        log.debug("%s: %s, %d lumps, directory at %d",
                  path, self.ident, numlumps, infotableofs)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_lump(self, name: str) -> int:
        """Return the index of the first lump named *name*, or -1 if not found."""
        return self.directory.find(name)

    def read_lump(self, name: str) -> bytes:
        """Read and return the raw bytes of the lump named *name*."""
        idx = self.find_lump(name)
        if idx == -1:
            raise KeyError(f"Lump not found: {name!r}")
        return self.read_lump_index(idx)

    def read_lump_index(self, index: int) -> bytes:
        """Read and return the raw bytes of lump at *index*."""
        return self.read_entry(self.directory[index])

    def read_entry(self, entry: DirectoryEntry) -> bytes:
        if entry.size < 0 or entry.filepos < 0 or entry.filepos + entry.size > len(self._data):
            raise StructuralError(
                f"{self.path}: lump {entry.name!r} ({entry.size} bytes at "
                f"{entry.filepos}) lies outside the {len(self._data)}-byte file"
            )
        return self._data[entry.filepos: entry.filepos + entry.size]

    def lump_size(self, index: int) -> int:
        """Return the byte length of lump at *index*."""
        return self.directory[index].size

    def lump_name(self, index: int) -> str:
        """Return the name of lump at *index*."""
        return self.directory[index].name

    def list_levels(self) -> list[str]:
        """Level marker names in directory order."""
        return self.directory.list_levels()


# ---------------------------------------------------------------------------
# Level loader
# ---------------------------------------------------------------------------

def load_level(wad: WAD, name: Optional[str] = None) -> LevelData:
    """
    Decode the map lumps of level *name* into a LevelData.

    Only the lumps between the marker and the next marker are considered,
    first lump of each kind wins.  A missing lump gives an empty
    collection.  With *name* None the first level is loaded; an archive
    with no level markers at all falls back to the first lump of each
    kind anywhere in the directory.
    """
    levels = wad.list_levels()
    if name is None:
        if levels:
            name = levels[0]
        else:
            log.debug("%s: no level markers, scanning whole directory", wad.path)
            return _decode_lumps(wad, "", 0, len(wad.directory))

    try:
        first, stop = wad.directory.level_range(name)
    except KeyError:
        raise StructuralError(
            f"{wad.path}: level {name!r} not found (levels: {', '.join(levels) or 'none'})"
        ) from None
    return _decode_lumps(wad, wad.directory[first - 1].name, first, stop)


def load_levels(wad: WAD) -> list[LevelData]:
    """Decode every level in the archive, in directory order."""
    return [load_level(wad, name) for name in wad.list_levels()]


def _decode_lumps(wad: WAD, name: str, first: int, stop: int) -> LevelData:
    level = LevelData(name=name)
    for lump, record_type in RECORD_TYPES.items():
        idx = wad.directory.find(lump, first, stop)
        if idx == -1:
            log.debug("%s %s: no %s lump", wad.path, name, lump)
            continue
        records = record_type.decode_all(wad.read_lump_index(idx))
        level.set_records(lump, records)
        log.debug("%s %s: %d %s", wad.path, name, len(records), lump)
    return level


def read_wad(path: str) -> list[LevelData]:
    """Open *path* and decode all of its levels."""
    wad = WAD(path)
    levels = load_levels(wad)
    if not levels:
        levels = [load_level(wad)]
    return levels
