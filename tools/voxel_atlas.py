"""Atlas state: a manifest, its sprite folder, tile size and loaded sprites.

An Atlas is an ordinary value owned by whoever created or loaded it. Edits
(tile size, sprite folder) reload the sprites immediately; a failed reload
leaves the atlas exactly as it was before the edit.

Requires: Pillow (PIL)
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

import atlas_manifest
from atlas_errors import TileSizeError
from atlas_packer import CANVAS, DEFAULT_MAX_WIDTH, TIGHT, pack_sprites, validate_tile_size
from sprite_loader import (
    DEFAULT_EXTENSIONS,
    SpriteEntry,
    normalize_relative_path,
    relative_to,
    scan_sprites,
)

DEFAULT_TILE_SIZE = atlas_manifest.DEFAULT_TILE_SIZE


def check_tile_size(tile_size) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(tile_size, bool) or not isinstance(tile_size, int) or tile_size <= 0:
        raise TileSizeError(f"tile size must be a positive integer, got {tile_size!r}")
    return tile_size


@dataclass
class Atlas:
    manifest_path: Path
    sprite_folder: str | None = None  # relative to manifest_path.parent
    tile_size: int = DEFAULT_TILE_SIZE
    sprites: list[SpriteEntry] = field(default_factory=list)
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    resample: str = "nearest"

    def __post_init__(self):
        self.manifest_path = Path(self.manifest_path)
        if self.sprite_folder is not None:
            self.sprite_folder = normalize_relative_path(self.sprite_folder)

    @classmethod
    def create(cls, manifest_path: Path, tile_size: int = DEFAULT_TILE_SIZE, **kwargs) -> Atlas:
        """New atlas with no sprite folder and no sprites."""
        check_tile_size(tile_size)
        return cls(manifest_path=manifest_path, tile_size=tile_size, **kwargs)

    @classmethod
    def load(cls, manifest_path: Path, reload: bool = True,
             max_width: int | None = None, **kwargs) -> Atlas:
        """Read the manifest at *manifest_path* and load its sprites.

        With *max_width*, a tile size wider than the atlas is rejected
        before any sprite is decoded.

        Raises ManifestParseError / OSError for an unreadable manifest,
        TileSizeError for an oversized tile and whatever reload() raises
        for the sprite folder.
        """
        data = atlas_manifest.read_manifest(manifest_path)
        atlas = cls(
            manifest_path=manifest_path,
            sprite_folder=data.sprite_folder,
            tile_size=data.tile_size,
            **kwargs,
        )
        if max_width is not None:
            validate_tile_size(atlas.tile_size, max_width)
        if reload:
            atlas.reload()
        return atlas

    @property
    def base_dir(self) -> Path:
        return self.manifest_path.parent

    @property
    def sprite_dir(self) -> Path | None:
        if self.sprite_folder is None:
            return None
        return self.base_dir / self.sprite_folder

    @property
    def export_image_path(self) -> Path:
        return atlas_manifest.export_image_path(self.manifest_path)

    def reload(self) -> None:
        """Rescan the sprite folder, replacing sprites only on success."""
        if self.sprite_folder is None:
            self.sprites = []
            return
        self.sprites = scan_sprites(
            self.base_dir,
            self.sprite_folder,
            self.tile_size,
            extensions=self.extensions,
            resample=self.resample,
        )

    def set_tile_size(self, tile_size: int, max_width: int | None = None) -> None:
        check_tile_size(tile_size)
        if max_width is not None:
            validate_tile_size(tile_size, max_width)
        previous = self.tile_size
        self.tile_size = tile_size
        try:
            self.reload()
        except Exception:
            self.tile_size = previous
            raise

    def set_sprite_folder(self, folder) -> None:
        """Point the atlas at *folder* (absolute, or relative to the manifest)."""
        folder = Path(folder)
        if folder.is_absolute():
            relative = relative_to(folder, self.base_dir)
        else:
            relative = normalize_relative_path(str(folder))
        previous = self.sprite_folder
        self.sprite_folder = relative
        try:
            self.reload()
        except Exception:
            self.sprite_folder = previous
            raise

    def pack(self, max_width: int = DEFAULT_MAX_WIDTH, mode: str = TIGHT):
        return pack_sprites(self.sprites, self.tile_size, max_width, mode)


def save_atlas(atlas: Atlas, max_width: int = DEFAULT_MAX_WIDTH, verbose: bool = True):
    """Write the manifest and the exported canvas PNG next to it.

    The image is packed before anything is written, so a pack failure
    leaves both files untouched. Returns (manifest_path, image_path).
    """
    packed = atlas.pack(max_width, CANVAS)

    manifest_path = atlas_manifest.write_manifest(atlas.manifest_path, atlas)
    if verbose:
        print(f"  Wrote: {manifest_path}")

    image_path = atlas.export_image_path
    packed.image.save(image_path, "PNG")
    if verbose:
        print(f"  Wrote: {image_path} ({packed.width}x{packed.height}, "
              f"{len(atlas.sprites)} sprites)")
    return manifest_path, image_path


def describe_atlas(atlas: Atlas, max_width: int = DEFAULT_MAX_WIDTH, out=None) -> None:
    """Print a human-readable summary of *atlas* and its tight layout."""
    if out is None:
        out = sys.stdout
    packed = atlas.pack(max_width, TIGHT)
    folder = atlas.sprite_folder if atlas.sprite_folder is not None else "(none)"
    print(f"  Manifest:    {atlas.manifest_path}", file=out)
    print(f"  Sprite dir:  {folder}", file=out)
    print(f"  Tile size:   {atlas.tile_size}", file=out)
    print(f"  Sprites:     {len(atlas.sprites)}", file=out)
    print(f"  Preview:     {packed.width}x{packed.height}", file=out)
    for placement in packed.placements:
        sprite = atlas.sprites[placement.sprite_index]
        print(f"    {sprite.name:<24} ({placement.x}, {placement.y})  "
              f"{sprite.relative_path}", file=out)
