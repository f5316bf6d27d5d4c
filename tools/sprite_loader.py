"""Scan a sprite folder into an ordered list of fixed-size sprite images.

Every PNG in the folder (non-recursive) becomes one SpriteEntry. Images whose
native size differs from the atlas tile size are stretched to fit, so each
loaded sprite is exactly tile_size x tile_size RGBA.

Requires: Pillow (PIL)
"""
from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from atlas_errors import SpriteFolderNotFoundError, SpriteLoadError, ValidationError

DEFAULT_EXTENSIONS = (".png",)

RESAMPLE_FILTERS = {
    "nearest": Image.NEAREST,
    "bilinear": Image.BILINEAR,
    "bicubic": Image.BICUBIC,
    "lanczos": Image.LANCZOS,
}


@dataclass
class SpriteEntry:
    """One decoded sprite and where it came from."""

    relative_path: str  # relative to the manifest directory, "/" separated
    name: str
    image: Image.Image


def normalize_relative_path(path: str) -> str:
    """Return *path* with forward slashes and redundant segments collapsed."""
    normalized = posixpath.normpath(path.replace("\\", "/"))
    return "" if normalized == "." else normalized


def relative_to(path: Path, base_dir: Path) -> str:
    """Path of *path* relative to *base_dir*, "/" separated on every OS."""
    return normalize_relative_path(os.path.relpath(path, base_dir))


def list_sprite_files(folder: Path, extensions=DEFAULT_EXTENSIONS) -> list[Path]:
    """List image files directly inside *folder*, in filename order."""
    wanted = {ext.lower() for ext in extensions}
    return sorted(
        (p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in wanted),
        key=lambda p: p.name,
    )


def load_sprite_image(path: Path, tile_size: int, resample: str = "nearest") -> Image.Image:
    """Decode *path* as RGBA, stretched to tile_size x tile_size.

    Raises SpriteLoadError if the file is not a readable image.
    """
    try:
        with Image.open(path) as src:
            img = src.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise SpriteLoadError(path, str(exc)) from exc

    if img.size != (tile_size, tile_size):
        img = img.resize((tile_size, tile_size), RESAMPLE_FILTERS[resample])
    return img


def scan_sprites(
    base_dir: Path,
    sprite_folder: str,
    tile_size: int,
    extensions=DEFAULT_EXTENSIONS,
    resample: str = "nearest",
) -> list[SpriteEntry]:
    """Load every sprite in *sprite_folder*, resolved against *base_dir*.

    Returns entries sorted by name (code point order). Python's sort is
    stable, so duplicate names keep their scan order.

    Raises:
        SpriteFolderNotFoundError: the resolved folder does not exist.
        SpriteLoadError: a file in the folder cannot be decoded.
    """
    if resample not in RESAMPLE_FILTERS:
        raise ValidationError(
            f"unknown resample filter {resample!r}, expected one of {sorted(RESAMPLE_FILTERS)}"
        )

    base_dir = Path(base_dir)
    folder = base_dir / sprite_folder
    if not folder.is_dir():
        raise SpriteFolderNotFoundError(folder)

    sprites = []
    for path in list_sprite_files(folder, extensions):
        sprites.append(SpriteEntry(
            relative_path=relative_to(path, base_dir),
            name=path.stem,
            image=load_sprite_image(path, tile_size, resample),
        ))

    sprites.sort(key=lambda s: s.name)
    return sprites
