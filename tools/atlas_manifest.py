"""Read and write atlas manifests (*.atlas.json).

A manifest stores only what is needed to rebuild the atlas:

    {
      "spriteFolder": "sprites/blocks",
      "tileSize": 32
    }

Manifests written by the old editor used "SpriteFolder"/"SpriteSize" and
embedded a "Sprites" list. Those keys are still read; the sprite list is
ignored and never written back.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from atlas_errors import ManifestParseError

DEFAULT_TILE_SIZE = 32
MANIFEST_SUFFIX = ".atlas.json"

_FOLDER_KEYS = ("spriteFolder", "SpriteFolder")
_TILE_SIZE_KEYS = ("tileSize", "SpriteSize")


@dataclass
class ManifestData:
    """Persistent fields of an atlas."""

    sprite_folder: str | None
    tile_size: int = DEFAULT_TILE_SIZE


def _first_key(data: dict, keys: tuple[str, ...]):
    for key in keys:
        if key in data:
            return key
    return None


def encode_manifest(atlas) -> bytes:
    """Serialize the persistent fields of *atlas* (or ManifestData)."""
    payload = {
        "spriteFolder": atlas.sprite_folder,
        "tileSize": atlas.tile_size,
    }
    return (json.dumps(payload, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def decode_manifest(data: bytes | str, path: Path | None = None) -> ManifestData:
    """Parse manifest bytes into ManifestData.

    Raises ManifestParseError for anything that is not a JSON object with a
    string (or null) folder and a positive integer tile size.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ManifestParseError(f"not UTF-8 text: {exc}", path) from exc

    try:
        raw = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"invalid JSON: {exc}", path) from exc
    except RecursionError as exc:
        raise ManifestParseError("JSON nested too deeply", path) from exc

    if not isinstance(raw, dict):
        raise ManifestParseError(
            f"expected a JSON object, got {type(raw).__name__}", path
        )

    folder_key = _first_key(raw, _FOLDER_KEYS)
    folder = raw[folder_key] if folder_key else None
    if folder is not None and not isinstance(folder, str):
        raise ManifestParseError(f"'{folder_key}' must be a string or null", path)

    size_key = _first_key(raw, _TILE_SIZE_KEYS)
    tile_size = raw[size_key] if size_key else DEFAULT_TILE_SIZE
    # bool is an int subclass; reject it explicitly
    if isinstance(tile_size, bool) or not isinstance(tile_size, int):
        raise ManifestParseError(f"'{size_key}' must be an integer", path)
    if tile_size <= 0:
        raise ManifestParseError(
            f"'{size_key}' must be positive, got {tile_size}", path
        )

    return ManifestData(sprite_folder=folder, tile_size=tile_size)


def read_manifest(path: Path) -> ManifestData:
    """Read and decode the manifest at *path*."""
    path = Path(path)
    return decode_manifest(path.read_bytes(), path)


def write_manifest(path: Path, atlas) -> Path:
    """Encode *atlas* and write it to *path*."""
    path = Path(path)
    path.write_bytes(encode_manifest(atlas))
    return path


def export_image_path(manifest_path: Path) -> Path:
    """PNG path beside the manifest: blocks.atlas.json -> blocks.png."""
    manifest_path = Path(manifest_path)
    name = manifest_path.name
    if name.endswith(MANIFEST_SUFFIX):
        stem = name[: -len(MANIFEST_SUFFIX)]
    else:
        stem = manifest_path.stem
        if stem.endswith(".atlas"):
            stem = stem[: -len(".atlas")]
    return manifest_path.with_name(f"{stem}.png")
