"""
Lump directory handling.

Directory entry layout (16 bytes each, ``numlumps`` of them at
``infotableofs``):
    i   filepos
    i   size
    8s  name  (NUL-padded)

Map lumps carry no level id of their own: a level is the run of entries
that follows its marker (MAP01, E1M1, ...) up to the next marker.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from wadtool.defs import (
    DIR_ENTRY_FMT, DIR_ENTRY_SIZE,
    decode_name, encode_name, is_level_marker,
)


@dataclass(frozen=True)
class DirectoryEntry:
    filepos: int
    size: int
    name: str

    @property
    def is_level_marker(self) -> bool:
        return is_level_marker(self.name)

    def encode(self) -> bytes:
        return struct.pack(DIR_ENTRY_FMT, self.filepos, self.size, encode_name(self.name))

    @classmethod
    def decode(cls, data: bytes, offset: int = 0) -> "DirectoryEntry":
        filepos, size, raw_name = struct.unpack_from(DIR_ENTRY_FMT, data, offset)
        return cls(filepos, size, decode_name(raw_name))


class LumpDirectory:
    """Ordered list of directory entries with name and level lookups."""

    def __init__(self, entries: Iterable[DirectoryEntry] = ()) -> None:
        self._entries: list[DirectoryEntry] = list(entries)

    @classmethod
    def decode(cls, data: bytes, count: int) -> "LumpDirectory":
        """Parse *count* consecutive 16-byte entries from *data*."""
        return cls(
            DirectoryEntry.decode(data, i * DIR_ENTRY_SIZE) for i in range(count)
        )

    def encode(self) -> bytes:
        return b"".join(e.encode() for e in self._entries)

    def append(self, entry: DirectoryEntry) -> None:
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> DirectoryEntry:
        return self._entries[index]

    @property
    def entries(self) -> list[DirectoryEntry]:
        return list(self._entries)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find(self, name: str, start: int = 0, stop: Optional[int] = None) -> int:
        """Index of the first entry named *name* (any case), or -1."""
        wanted = name.upper()
        stop = len(self._entries) if stop is None else stop
        for i in range(start, stop):
            if self._entries[i].name.upper() == wanted:
                return i
        return -1

    def get(self, name: str) -> Optional[DirectoryEntry]:
        idx = self.find(name)
        return self._entries[idx] if idx != -1 else None

    def list_levels(self) -> list[str]:
        """Names of all level markers, in directory order."""
        return [e.name for e in self._entries if e.is_level_marker]

    def level_range(self, marker: str) -> tuple[int, int]:
        """``(first, stop)`` indices of the lumps belonging to *marker*.

        Raises KeyError if there is no such level marker.
        """
        idx = self.find(marker)
        if idx == -1 or not self._entries[idx].is_level_marker:
            raise KeyError(f"Level marker not found: {marker!r}")
        stop = idx + 1
        while stop < len(self._entries) and not self._entries[stop].is_level_marker:
            stop += 1
        return idx + 1, stop

    def lumps_for_level(self, marker: str) -> list[DirectoryEntry]:
        """Entries between *marker* and the next marker (or the end)."""
        first, stop = self.level_range(marker)
        return self._entries[first:stop]
