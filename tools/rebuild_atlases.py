"""Rebuild every atlas manifest under a directory tree.

Each manifest is loaded, its sprites rescanned, and both the manifest and the
exported PNG are rewritten. A broken manifest is reported and skipped; the
rest of the batch still runs.
"""
from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from pathlib import Path

from atlas_errors import AtlasError
from atlas_manifest import MANIFEST_SUFFIX
from atlas_packer import DEFAULT_MAX_WIDTH
from voxel_atlas import Atlas, save_atlas

DEFAULT_PATTERN = f"*{MANIFEST_SUFFIX}"

SUCCESS = "success"
FAILED = "failed"


@dataclass
class RebuildResult:
    path: Path
    outcome: str
    error: str | None = None
    image_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == SUCCESS


def find_manifests(root_dir: Path, pattern: str = DEFAULT_PATTERN) -> list[Path]:
    """All manifests under *root_dir*, recursively, in sorted path order."""
    return sorted(p for p in Path(root_dir).rglob(pattern) if p.is_file())


def rebuild_one(manifest_path: Path, max_width: int = DEFAULT_MAX_WIDTH,
                verbose: bool = False, **atlas_options) -> RebuildResult:
    """Load, repack and re-save a single manifest, capturing any failure."""
    try:
        atlas = Atlas.load(manifest_path, max_width=max_width, **atlas_options)
        _, image_path = save_atlas(atlas, max_width, verbose=verbose)
    except (AtlasError, OSError) as exc:
        return RebuildResult(manifest_path, FAILED, error=str(exc))
    return RebuildResult(manifest_path, SUCCESS, image_path=image_path)


def rebuild_all(root_dir: Path, max_width: int = DEFAULT_MAX_WIDTH,
                pattern: str = DEFAULT_PATTERN, delay: float = 0.0,
                verbose: bool = True, **atlas_options) -> list[RebuildResult]:
    """Rebuild every manifest matching *pattern* under *root_dir*.

    Manifests are processed one at a time in path order, optionally pausing
    *delay* seconds between them. Returns one RebuildResult per manifest.
    """
    results = []
    for i, manifest_path in enumerate(find_manifests(root_dir, pattern)):
        if delay and i > 0:
            time.sleep(delay)
        result = rebuild_one(manifest_path, max_width, **atlas_options)
        if verbose:
            if result.ok:
                print(f"  OK: {manifest_path} -> {result.image_path.name}")
            else:
                print(f"  FAILED: {manifest_path}: {result.error}", file=sys.stderr)
        results.append(result)
    return results
