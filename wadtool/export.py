"""JSON export of decoded levels, one file per level."""

import json
import logging
import os

from wadtool.defs import LevelData, LUMP_ORDER
from wadtool.wad import WAD, load_levels

log = logging.getLogger(__name__)

# JSON key for each lump's collection
_COLLECTION_KEYS = {
    "THINGS": "things",
    "LINEDEFS": "lineDefs",
    "SIDEDEFS": "sideDefs",
    "VERTEXES": "vertexes",
    "SEGS": "segs",
    "SSECTORS": "subSectors",
    "NODES": "nodes",
    "SECTORS": "sectors",
}

# Field names that don't camel-case mechanically
_FIELD_KEYS = {
    "right_sidedef": "rightSideDef",
    "left_sidedef": "leftSideDef",
    "linedef": "lineDef",
}


def _camel(name: str) -> str:
    if name in _FIELD_KEYS:
        return _FIELD_KEYS[name]
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def record_to_dict(record) -> dict:
    return {_camel(name): getattr(record, name) for name in record.field_names()}


def level_to_dict(level: LevelData) -> dict:
    """Plain-dict form of *level*, collections in lump order."""
    out = {"name": level.name}
    for lump in LUMP_ORDER:
        out[_COLLECTION_KEYS[lump]] = [record_to_dict(r) for r in level.records(lump)]
    return out


def export_levels(wad_path: str, out_dir: str) -> list[str]:
    """
    Write every level of *wad_path* to ``<out_dir>/<wadname>_<n>.json``,
    n counting from 1 in directory order.  Returns the written paths.
    """
    wad = WAD(wad_path)
    levels = load_levels(wad)
    if not levels:
        log.warning("No levels detected in %s", wad_path)
        return []

    os.makedirs(out_dir, exist_ok=True)
    base = os.path.splitext(os.path.basename(wad_path))[0]

    paths = []
    for index, level in enumerate(levels, 1):
        path = os.path.join(out_dir, f"{base}_{index}.json")
        with open(path, "w") as f:
            json.dump(level_to_dict(level), f, indent=2)
        log.info("Saved level %s to %s", level.name, path)
        paths.append(path)
    return paths
