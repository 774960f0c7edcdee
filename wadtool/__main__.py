"""Entry point for `python -m wadtool <command> ...`.

Usage:
    python -m wadtool info ATTACK.WAD [--level MAP01] [--samples 5]
    python -m wadtool export ATTACK.WAD [--out data]
    python -m wadtool svg ATTACK.WAD [--level MAP01] [--out level.svg]
    python -m wadtool view ATTACK.WAD [--level MAP01] [--snapshot map.png]
    python -m wadtool generate prompt.txt [--out data/GENAI.WAD] [--svg]

Defaults for output locations, log level and the written header/marker
come from the environment (or a .env file), see lib.config.
"""
import argparse
import os
import re
import sys

from rich.table import Table

from lib.config import console, get_settings, load_prompt, setup_logging
from wadtool.defs import LUMP_ORDER
from wadtool.errors import WadError


def _load(path: str, level_name):
    from wadtool.wad import WAD, load_level

    wad = WAD(path)
    return wad, load_level(wad, level_name)


def cmd_info(args, settings) -> int:
    wad, level = _load(args.wad, args.level)
    console.print(f"[bold]WAD file:[/] {wad.path}")
    console.print(f"  Type: {wad.ident}   Directory entries: {wad.numlumps}")
    levels = wad.list_levels()
    console.print(f"  Levels: {', '.join(levels) if levels else '(none)'}")

    table = Table(title=f"Level {level.name or '(unmarked)'}")
    table.add_column("Lump")
    table.add_column("Records", justify="right")
    for lump, count in level.summary().items():
        table.add_row(lump, str(count))
    console.print(table)

    start = level.player_start
    if start is None:
        console.print("  Player 1 start: [yellow]missing[/]")
    else:
        console.print(f"  Player 1 start: ({start.x}, {start.y}) facing {start.angle}")

    if args.samples > 0:
        for lump in LUMP_ORDER:
            records = level.records(lump)
            if not records:
                continue
            console.print(f"\n[bold]{lump}[/] (first {min(args.samples, len(records))}):")
            for i, record in enumerate(records[: args.samples]):
                console.print(f"  {i}: {record}", highlight=False)

    problems = level.check_references()
    if problems:
        console.print(f"\n[yellow]{len(problems)} out-of-range references[/]")
        for problem in problems[:10]:
            console.print(f"  {problem}", style="yellow", highlight=False)
    return 0


def cmd_export(args, settings) -> int:
    from wadtool.export import export_levels

    out_dir = args.out or settings.data_dir
    paths = export_levels(args.wad, out_dir)
    if not paths:
        console.print(f"No levels detected in {args.wad}", style="yellow")
    for path in paths:
        console.print(f"  Saved {path}")
    return 0


def cmd_svg(args, settings) -> int:
    from wadtool.svg import write_svg

    _, level = _load(args.wad, args.level)
    out = args.out or _with_suffix(args.wad, ".svg")
    write_svg(level, out)
    console.print(f"SVG preview: {out}")
    return 0


def cmd_view(args, settings) -> int:
    from wadtool.viewer import Viewer, save_snapshot

    _, level = _load(args.wad, args.level)
    if args.snapshot:
        save_snapshot(level, args.snapshot)
        console.print(f"Snapshot: {args.snapshot}")
    else:
        Viewer(level).run()
    return 0


def cmd_generate(args, settings) -> int:
    from wadtool.prompt import LevelBuilder, get_processor
    from wadtool.writer import write_level

    prompt = load_prompt(args.prompt)
    console.print(f"Reading prompt from: {args.prompt}")

    spec = get_processor(args.processor).process(prompt)
    console.print(f"Prompt processed into level spec: {spec}", highlight=False)

    level = LevelBuilder.from_spec(spec, name=settings.map_name)
    out = args.out or os.path.join(settings.data_dir, "GENAI.WAD")
    os.makedirs(os.path.dirname(out) or ".", exist_ok=True)
    write_level(out, level, ident=settings.ident)
    console.print(f"Generated WAD at: {out}")

    if args.svg:
        from wadtool.svg import write_svg
        from wadtool.wad import WAD, load_level

        svg_path = _with_suffix(out, ".svg")
        write_svg(load_level(WAD(out)), svg_path)
        console.print(f"SVG preview: {svg_path}")
    return 0


def _with_suffix(path: str, suffix: str) -> str:
    return re.sub(r"(?i)\.wad$", "", path) + suffix


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="wadtool", description="DOOM WAD level reader/writer")
    sub = p.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Summarise a WAD and one of its levels")
    info.add_argument("wad", help="Path to WAD file")
    info.add_argument("--level", help="Level marker, e.g. MAP01 or E1M1 (default: first)")
    info.add_argument("--samples", type=int, default=5, help="Records to print per lump")
    info.set_defaults(func=cmd_info)

    export = sub.add_parser("export", help="Export every level as JSON")
    export.add_argument("wad", help="Path to WAD file")
    export.add_argument("--out", help="Output directory (default: WADTOOL_DATA_DIR)")
    export.set_defaults(func=cmd_export)

    svg = sub.add_parser("svg", help="Write an SVG preview of a level")
    svg.add_argument("wad", help="Path to WAD file")
    svg.add_argument("--level", help="Level marker (default: first)")
    svg.add_argument("--out", help="SVG path (default: next to the WAD)")
    svg.set_defaults(func=cmd_svg)

    view = sub.add_parser("view", help="Open a level in the map viewer")
    view.add_argument("wad", help="Path to WAD file")
    view.add_argument("--level", help="Level marker (default: first)")
    view.add_argument("--snapshot", help="Save an image instead of opening a window")
    view.set_defaults(func=cmd_view)

    gen = sub.add_parser("generate", help="Generate a one-room level from a text prompt")
    gen.add_argument("prompt", nargs="?", default="prompt.txt", help="Prompt text file")
    gen.add_argument("--out", help="Output WAD (default: WADTOOL_DATA_DIR/GENAI.WAD)")
    gen.add_argument("--processor", default="keyword", help="Prompt processor")
    gen.add_argument("--svg", action="store_true", help="Also write an SVG preview")
    gen.set_defaults(func=cmd_generate)

    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    try:
        return args.func(args, settings)
    except (WadError, OSError, ValueError) as e:
        console.print(f"Error: {e}", style="bold red", highlight=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
