"""Shelf-pack fixed-size sprites into a single atlas image.

Sprites are placed left to right in input order and wrap to a new row when
the next tile would cross max_width. Two canvas sizes are produced:

- "tight": cropped to the rows actually used (editor preview)
- "canvas": always max_width x max_width (exported texture)

Requires: Pillow (PIL)
"""
from __future__ import annotations

from dataclasses import dataclass, field

from PIL import Image

from atlas_errors import AtlasOverflowError, TileSizeError

DEFAULT_MAX_WIDTH = 2048

TIGHT = "tight"
CANVAS = "canvas"
PACK_MODES = (TIGHT, CANVAS)


@dataclass(frozen=True)
class Placement:
    """Top-left corner of one sprite's tile in the atlas."""

    sprite_index: int
    x: int
    y: int


@dataclass
class PackedAtlasImage:
    """Composed atlas pixels plus the rectangle each sprite occupies."""

    image: Image.Image
    tile_size: int
    mode: str = TIGHT
    placements: list[Placement] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def rect(self, sprite_index: int) -> tuple[int, int, int, int]:
        """Return (x, y, w, h) of the sprite at *sprite_index*."""
        p = self.placements[sprite_index]
        return (p.x, p.y, self.tile_size, self.tile_size)


def validate_tile_size(tile_size, max_width: int = DEFAULT_MAX_WIDTH) -> int:
    """Return *tile_size* if it is a positive int no wider than the atlas."""
    if isinstance(tile_size, bool) or not isinstance(tile_size, int):
        raise TileSizeError(f"tile size must be an integer, got {tile_size!r}")
    if tile_size <= 0:
        raise TileSizeError(f"tile size must be positive, got {tile_size}")
    if tile_size > max_width:
        raise TileSizeError(
            f"tile size {tile_size} is wider than the atlas ({max_width})"
        )
    return tile_size


def compute_placements(count: int, tile_size: int, max_width: int) -> list[Placement]:
    """Row-major shelf placement for *count* tiles of *tile_size*."""
    placements = []
    x = y = 0
    for i in range(count):
        if x + tile_size > max_width:
            x = 0
            y += tile_size
        placements.append(Placement(i, x, y))
        x += tile_size
    return placements


def tight_size(count: int, tile_size: int, max_width: int) -> tuple[int, int]:
    """Canvas size of a tight pack.

    A trailing empty row is reserved when the last row is exactly full,
    so the preview height is always (count // per_row + 1) rows.
    """
    per_row = max_width // tile_size
    width = min(count, per_row) * tile_size
    height = (count // per_row + 1) * tile_size
    return width, height


def pack_sprites(sprites, tile_size: int, max_width: int = DEFAULT_MAX_WIDTH,
                 mode: str = TIGHT) -> PackedAtlasImage:
    """Compose *sprites* (SpriteEntry list, already ordered) into one image.

    Each sprite image must be tile_size x tile_size. The same input always
    produces the same placements and pixels.

    Raises:
        TileSizeError: tile_size is not positive or exceeds max_width.
        AtlasOverflowError: canvas mode and the sprites run off the bottom.
    """
    if mode not in PACK_MODES:
        raise ValueError(f"unknown pack mode {mode!r}, expected one of {PACK_MODES}")
    validate_tile_size(tile_size, max_width)

    placements = compute_placements(len(sprites), tile_size, max_width)

    if mode == CANVAS:
        size = (max_width, max_width)
        if placements and placements[-1].y + tile_size > max_width:
            capacity = (max_width // tile_size) ** 2
            raise AtlasOverflowError(
                f"{len(sprites)} sprites of {tile_size}px do not fit a "
                f"{max_width}x{max_width} canvas (max {capacity})"
            )
    else:
        size = tight_size(len(sprites), tile_size, max_width)

    atlas_img = Image.new("RGBA", size, (0, 0, 0, 0))
    for placement, sprite in zip(placements, sprites):
        if sprite.image.size != (tile_size, tile_size):
            raise TileSizeError(
                f"sprite '{sprite.name}' is {sprite.image.width}x"
                f"{sprite.image.height}, expected {tile_size}x{tile_size}"
            )
        atlas_img.paste(sprite.image, (placement.x, placement.y))

    return PackedAtlasImage(
        image=atlas_img,
        tile_size=tile_size,
        mode=mode,
        placements=placements,
    )
