import struct

import pytest

from wadtool.defs import LineDef, Sector, SideDef, Thing, Vertex
from wadtool.errors import StructuralError, WadIOError
from wadtool.wad import WAD, load_level, load_levels, read_wad


def _things(*things):
    return Thing.encode_all(things)


def test_header_and_directory(make_wad):
    path = make_wad([("MAP01", b""), ("THINGS", _things(Thing(0, 0, 0, 1, 7)))], ident=b"IWAD")
    wad = WAD(path)
    assert wad.ident == "IWAD"
    assert wad.numlumps == 2
    assert wad.infotableofs == 12 + 10
    assert wad.lump_name(1) == "THINGS"
    assert wad.lump_size(1) == 10
    assert wad.find_lump("things") == 1
    assert wad.find_lump("NODES") == -1
    assert wad.read_lump("THINGS") == Thing(0, 0, 0, 1, 7).encode()
    assert wad.list_levels() == ["MAP01"]


def test_read_lump_missing(make_wad):
    wad = WAD(make_wad([("MAP01", b"")]))
    with pytest.raises(KeyError):
        wad.read_lump("SECTORS")


def test_load_level_decodes_each_lump(make_wad):
    lumps = [
        ("E1M1", b""),
        ("THINGS", _things(Thing(32, -32, 45, 1, 7))),
        ("LINEDEFS", LineDef(0, 1, 1, 0, 0, 0, 0xFFFF).encode()),
        ("SIDEDEFS", SideDef(0, 0, "-", "-", "BROWN96", 0).encode()),
        ("VERTEXES", Vertex(0, 0).encode() + Vertex(64, 0).encode()),
        ("SECTORS", Sector(0, 72, "FLAT14", "FLAT1", 192, 0, 0).encode()),
    ]
    level = load_level(WAD(make_wad(lumps)), "E1M1")
    assert level.name == "E1M1"
    assert level.things == [Thing(32, -32, 45, 1, 7)]
    assert level.linedefs == [LineDef(0, 1, 1, 0, 0, 0, 0xFFFF)]
    assert level.sidedefs[0].middle_texture == "BROWN96"
    assert level.vertexes == [Vertex(0, 0), Vertex(64, 0)]
    assert level.sectors[0].floor_texture == "FLAT14"


def test_missing_lumps_are_empty(make_wad):
    level = load_level(WAD(make_wad([("MAP01", b""), ("VERTEXES", Vertex(1, 1).encode())])))
    assert level.vertexes == [Vertex(1, 1)]
    assert level.things == []
    assert level.nodes == []
    assert level.segs == []
    assert level.summary()["VERTEXES"] == 1
    assert level.summary()["SEGS"] == 0


def test_unsupported_lumps_skipped(make_wad):
    lumps = [
        ("MAP01", b""),
        ("THINGS", _things(Thing(0, 0, 0, 1, 7))),
        ("REJECT", b"\xff" * 3),
        ("BLOCKMAP", b"\x00" * 9),
        ("BEHAVIOR", b"ACS\x00"),
    ]
    level = load_level(WAD(make_wad(lumps)))
    assert len(level.things) == 1


def test_truncated_segment_decodes_whole_records(make_wad):
    path = make_wad([("MAP01", b""), ("VERTEXES", struct.pack("<hhh", 5, 6, 7))])
    level = load_level(WAD(path))
    assert level.vertexes == [Vertex(5, 6)]


def test_unsigned_linedef_index_from_file(make_wad):
    raw = struct.pack("<HHhhhHH", 0xFFFF, 0, 0, 0, 0, 0, 0xFFFF)
    level = load_level(WAD(make_wad([("MAP01", b""), ("LINEDEFS", raw)])))
    assert level.linedefs[0].start_vertex == 65535


def test_levels_are_scoped_to_their_lump_run(make_wad):
    lumps = [
        ("MAP01", b""),
        ("THINGS", _things(Thing(1, 1, 0, 1, 7))),
        ("MAP02", b""),
        ("THINGS", _things(Thing(2, 2, 0, 1, 7), Thing(3, 3, 0, 9, 7))),
        ("VERTEXES", Vertex(9, 9).encode()),
    ]
    wad = WAD(make_wad(lumps))
    map01 = load_level(wad, "MAP01")
    map02 = load_level(wad, "map02")
    assert map01.things == [Thing(1, 1, 0, 1, 7)]
    assert map01.vertexes == []
    assert len(map02.things) == 2
    assert map02.vertexes == [Vertex(9, 9)]
    assert [lvl.name for lvl in load_levels(wad)] == ["MAP01", "MAP02"]


def test_default_level_is_first(make_wad):
    lumps = [("E1M2", b""), ("THINGS", _things(Thing(7, 7, 0, 1, 7))), ("E1M1", b"")]
    level = load_level(WAD(make_wad(lumps)))
    assert level.name == "E1M2"


def test_no_markers_falls_back_to_whole_directory(make_wad):
    lumps = [("THINGS", _things(Thing(4, 4, 0, 1, 7))), ("VERTEXES", Vertex(2, 3).encode())]
    wad = WAD(make_wad(lumps))
    assert wad.list_levels() == []
    assert load_levels(wad) == []
    level = load_level(wad)
    assert level.name == ""
    assert level.vertexes == [Vertex(2, 3)]
    assert read_wad(wad.path)[0].things == [Thing(4, 4, 0, 1, 7)]


def test_unknown_level(make_wad):
    wad = WAD(make_wad([("MAP01", b"")]))
    with pytest.raises(StructuralError, match="MAP05"):
        load_level(wad, "MAP05")


def test_bad_identification(make_wad):
    with pytest.raises(StructuralError, match="identification"):
        WAD(make_wad([("MAP01", b"")], ident=b"JUNK"))


def test_file_too_short(tmp_path):
    path = tmp_path / "short.wad"
    path.write_bytes(b"PWAD\x01\x00")
    with pytest.raises(StructuralError):
        WAD(str(path))


def test_directory_outside_file(tmp_path):
    path = tmp_path / "bad.wad"
    path.write_bytes(struct.pack("<4sii", b"PWAD", 3, 500))
    with pytest.raises(StructuralError, match="outside"):
        WAD(str(path))


def test_negative_lump_count(tmp_path):
    path = tmp_path / "neg.wad"
    path.write_bytes(struct.pack("<4sii", b"PWAD", -1, 12))
    with pytest.raises(StructuralError):
        WAD(str(path))


def test_lump_outside_file(tmp_path):
    directory = struct.pack("<ii8s", 12, 0, b"MAP01") + struct.pack("<ii8s", 4000, 10, b"THINGS")
    path = tmp_path / "lump.wad"
    path.write_bytes(struct.pack("<4sii", b"PWAD", 2, 12) + directory)
    wad = WAD(str(path))
    with pytest.raises(StructuralError, match="THINGS"):
        load_level(wad)


def test_missing_file(tmp_path):
    with pytest.raises(WadIOError) as excinfo:
        WAD(str(tmp_path / "nope.wad"))
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
