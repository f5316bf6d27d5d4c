"""Exception types shared by the voxel atlas tools."""
from __future__ import annotations

from pathlib import Path


class AtlasError(Exception):
    """Base class for every error raised by the atlas tools."""


class SpriteFolderNotFoundError(AtlasError, FileNotFoundError):
    """The sprite folder referenced by a manifest does not exist."""

    def __init__(self, folder: Path):
        self.folder = Path(folder)
        super().__init__(f"sprite folder not found: {self.folder}")


class DecodeError(AtlasError):
    """An image could not be decoded."""


class SpriteLoadError(DecodeError):
    """A sprite file could not be decoded as an image."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        message = f"cannot decode sprite: {self.path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ManifestParseError(AtlasError, ValueError):
    """A manifest file is not valid atlas JSON."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class ValidationError(AtlasError, ValueError):
    """An argument is outside the accepted range."""


class TileSizeError(ValidationError):
    """Tile size is not a positive integer that fits the atlas width."""


class AtlasOverflowError(ValidationError):
    """More sprites than fit on the fixed export canvas."""
