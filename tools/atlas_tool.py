#!/usr/bin/env python3
"""Create, edit and rebuild voxel texture atlases.

An atlas is a *.atlas.json manifest naming a folder of same-size square
sprites and the tile size. Saving packs the sprites (sorted by name) left to
right into a fixed max_width x max_width PNG written beside the manifest:
blocks.atlas.json -> blocks.png.

Usage:
    python3 tools/atlas_tool.py create assets/blocks.atlas.json --sprite-folder blocks
    python3 tools/atlas_tool.py info assets/blocks.atlas.json
    python3 tools/atlas_tool.py set-size assets/blocks.atlas.json 64
    python3 tools/atlas_tool.py set-folder assets/blocks.atlas.json blocks_hd
    python3 tools/atlas_tool.py save assets/blocks.atlas.json
    python3 tools/atlas_tool.py preview assets/blocks.atlas.json -o /tmp/blocks.png
    python3 tools/atlas_tool.py rebuild assets/

Requires: Pillow (PIL)
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from atlas_errors import AtlasError
from atlas_manifest import write_manifest
from atlas_packer import TIGHT, validate_tile_size
from rebuild_atlases import rebuild_all
from voxel_atlas import Atlas, describe_atlas, save_atlas

SCRIPT_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = SCRIPT_DIR / "atlas_config.json"

DEFAULT_CONFIG = {
    "max_width": 2048,
    "default_tile_size": 32,
    "manifest_pattern": "*.atlas.json",
    "image_extensions": [".png"],
    "resample": "nearest",
    "rebuild_delay": 0,
}


def load_atlas_config(config_path: Path | None = None) -> dict:
    """Load atlas_config.json merged over the built-in defaults."""
    config = dict(DEFAULT_CONFIG)
    path = config_path or DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path) as f:
            config.update(json.load(f))
    elif config_path is not None:
        raise FileNotFoundError(f"config file not found: {config_path}")
    return config


def _atlas_options(config: dict) -> dict:
    return {
        "extensions": tuple(config["image_extensions"]),
        "resample": config["resample"],
    }


def cmd_create(args, config) -> int:
    tile_size = args.tile_size
    if tile_size is None:
        tile_size = config["default_tile_size"]
    validate_tile_size(tile_size, args.max_width)
    atlas = Atlas.create(args.manifest, tile_size, **_atlas_options(config))
    if args.sprite_folder:
        atlas.set_sprite_folder(args.sprite_folder)
    args.manifest.parent.mkdir(parents=True, exist_ok=True)
    write_manifest(atlas.manifest_path, atlas)
    print(f"  Wrote: {atlas.manifest_path}")
    print(f"  Tile size:   {atlas.tile_size}")
    print(f"  Sprites:     {len(atlas.sprites)}")
    return 0


def cmd_info(args, config) -> int:
    atlas = Atlas.load(args.manifest, max_width=args.max_width, **_atlas_options(config))
    describe_atlas(atlas, args.max_width)
    return 0


def cmd_set_size(args, config) -> int:
    atlas = Atlas.load(args.manifest, max_width=args.max_width, **_atlas_options(config))
    atlas.set_tile_size(args.tile_size, args.max_width)
    save_atlas(atlas, args.max_width)
    return 0


def cmd_set_folder(args, config) -> int:
    atlas = Atlas.load(args.manifest, reload=False, max_width=args.max_width,
                       **_atlas_options(config))
    atlas.set_sprite_folder(args.folder)
    save_atlas(atlas, args.max_width)
    return 0


def cmd_save(args, config) -> int:
    atlas = Atlas.load(args.manifest, max_width=args.max_width, **_atlas_options(config))
    save_atlas(atlas, args.max_width)
    return 0


def cmd_preview(args, config) -> int:
    atlas = Atlas.load(args.manifest, max_width=args.max_width, **_atlas_options(config))
    if not atlas.sprites:
        print("Error: atlas has no sprites to preview", file=sys.stderr)
        return 1
    packed = atlas.pack(args.max_width, TIGHT)
    output = args.output or atlas.export_image_path.with_name(
        atlas.export_image_path.stem + "_preview.png"
    )
    packed.image.save(output, "PNG")
    print(f"  Wrote: {output} ({packed.width}x{packed.height})")
    return 0


def cmd_rebuild(args, config) -> int:
    root = args.root or Path.cwd()
    if not root.is_dir():
        print(f"Error: directory not found: {root}", file=sys.stderr)
        return 1

    print(f"=== Rebuild Atlases: {root} ===")
    results = rebuild_all(
        root,
        args.max_width,
        pattern=config["manifest_pattern"],
        delay=config["rebuild_delay"],
        **_atlas_options(config),
    )
    failed = [r for r in results if not r.ok]
    print(f"=== Done: {len(results) - len(failed)} rebuilt, "
          f"{len(failed)} failed ===")
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--max-width", type=int, default=None,
        help="Atlas width in pixels (default: from config, 2048)"
    )
    common.add_argument(
        "--config", type=Path, default=None,
        help=f"Config file (default: {DEFAULT_CONFIG_PATH.name} beside this script)"
    )

    parser = argparse.ArgumentParser(
        description="Pack folders of square sprites into texture atlases."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create", parents=[common], help="Create a new manifest")
    p.add_argument("manifest", type=Path)
    p.add_argument("--tile-size", type=int, default=None,
                   help="Sprite size in pixels (default: from config, 32)")
    p.add_argument("--sprite-folder", default=None,
                   help="Sprite folder, relative to the manifest or absolute")
    p.set_defaults(func=cmd_create)

    p = sub.add_parser("info", parents=[common], help="Show sprites and layout")
    p.add_argument("manifest", type=Path)
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("set-size", parents=[common], help="Change tile size and save")
    p.add_argument("manifest", type=Path)
    p.add_argument("tile_size", type=int)
    p.set_defaults(func=cmd_set_size)

    p = sub.add_parser("set-folder", parents=[common], help="Change sprite folder and save")
    p.add_argument("manifest", type=Path)
    p.add_argument("folder")
    p.set_defaults(func=cmd_set_folder)

    p = sub.add_parser("save", parents=[common], help="Rewrite manifest and PNG")
    p.add_argument("manifest", type=Path)
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("preview", parents=[common], help="Write the tight preview PNG")
    p.add_argument("manifest", type=Path)
    p.add_argument("-o", "--output", type=Path, default=None,
                   help="Output PNG (default: <name>_preview.png beside the manifest)")
    p.set_defaults(func=cmd_preview)

    p = sub.add_parser("rebuild", parents=[common], help="Rebuild every manifest under ROOT")
    p.add_argument("root", nargs="?", type=Path, default=None,
                   help="Directory to search (default: current directory)")
    p.set_defaults(func=cmd_rebuild)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_atlas_config(args.config)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Error: cannot read config: {exc}", file=sys.stderr)
        return 1
    if args.max_width is None:
        args.max_width = config["max_width"]

    try:
        return args.func(args, config)
    except (AtlasError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
