"""Tests for tools/rebuild_atlases.py — batch atlas regeneration."""
from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest import mock

from PIL import Image

# Ensure tools/ is importable
TOOLS_DIR = Path(__file__).resolve().parent.parent.parent / "tools"
sys.path.insert(0, str(TOOLS_DIR))

import rebuild_atlases as ra
import voxel_atlas


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_atlas(root, name, sprites=("grass", "stone"), tile_size=16, manifest=None):
    """Create <root>/sprites/*.png and <root>/<name>.atlas.json."""
    sprite_dir = root / "sprites"
    sprite_dir.mkdir(parents=True, exist_ok=True)
    for sprite in sprites:
        Image.new("RGBA", (tile_size, tile_size), (90, 160, 60, 255)).save(
            sprite_dir / f"{sprite}.png", "PNG"
        )
    path = root / f"{name}.atlas.json"
    if manifest is None:
        manifest = json.dumps({"spriteFolder": "sprites", "tileSize": tile_size})
    path.write_text(manifest)
    return path


# ---------------------------------------------------------------------------
# Unit tests — find_manifests
# ---------------------------------------------------------------------------

class TestFindManifests:
    def test_recursive_and_sorted(self, tmp_path):
        c = make_atlas(tmp_path / "c", "items")
        a = make_atlas(tmp_path / "a" / "deep", "blocks")
        b = make_atlas(tmp_path / "b", "terrain")
        (tmp_path / "b" / "other.json").write_text("{}")

        assert ra.find_manifests(tmp_path) == [a, b, c]

    def test_empty_tree(self, tmp_path):
        assert ra.find_manifests(tmp_path) == []


# ---------------------------------------------------------------------------
# Integration tests — rebuild_all
# ---------------------------------------------------------------------------

class TestRebuildAll:
    def test_malformed_manifest_does_not_stop_batch(self, tmp_path):
        first = make_atlas(tmp_path / "a", "blocks")
        second = make_atlas(tmp_path / "b", "broken", manifest="{not json")
        third = make_atlas(tmp_path / "c", "items")

        results = ra.rebuild_all(tmp_path, 256, verbose=False)

        assert [r.path for r in results] == [first, second, third]
        assert [r.outcome for r in results] == [ra.SUCCESS, ra.FAILED, ra.SUCCESS]
        assert (tmp_path / "a" / "blocks.png").exists()
        assert not (tmp_path / "b" / "broken.png").exists()
        assert (tmp_path / "c" / "items.png").exists()
        assert results[1].error
        assert not results[1].ok

    def test_missing_sprite_folder_is_reported(self, tmp_path):
        path = tmp_path / "lost.atlas.json"
        path.write_text(json.dumps({"spriteFolder": "gone", "tileSize": 16}))

        results = ra.rebuild_all(tmp_path, 256, verbose=False)

        assert results[0].outcome == ra.FAILED
        assert "gone" in results[0].error

    def test_corrupt_sprite_is_reported(self, tmp_path):
        make_atlas(tmp_path, "blocks")
        (tmp_path / "sprites" / "zz_bad.png").write_bytes(b"nope")

        results = ra.rebuild_all(tmp_path, 256, verbose=False)

        assert results[0].outcome == ra.FAILED
        assert "zz_bad.png" in results[0].error

    def test_writes_canvas_sized_png(self, tmp_path):
        make_atlas(tmp_path, "blocks")

        results = ra.rebuild_all(tmp_path, 128, verbose=False)

        assert results[0].image_path == tmp_path / "blocks.png"
        with Image.open(results[0].image_path) as img:
            assert img.size == (128, 128)
            assert img.getpixel((0, 0)) == (90, 160, 60, 255)
            assert img.getpixel((40, 0)) == (0, 0, 0, 0)

    def test_normalizes_legacy_manifest(self, tmp_path):
        make_atlas(tmp_path / "tex", "unused")
        path = tmp_path / "blocks.atlas.json"
        path.write_text(json.dumps({
            "Sprites": [{"FilePath": "tex/sprites/grass.png", "Name": "grass"}],
            "SpriteFolder": "tex\\sprites",
            "SpriteSize": 16,
        }))

        ra.rebuild_all(tmp_path, 128, pattern="blocks.atlas.json", verbose=False)

        assert json.loads(path.read_text()) == {
            "spriteFolder": "tex/sprites", "tileSize": 16,
        }

    def test_pauses_between_manifests(self, tmp_path):
        for name in ("a", "b", "c"):
            make_atlas(tmp_path / name, name)

        with mock.patch("rebuild_atlases.time.sleep") as sleep:
            ra.rebuild_all(tmp_path, 128, delay=0.5, verbose=False)

        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_no_pause_by_default(self, tmp_path):
        make_atlas(tmp_path / "a", "a")
        make_atlas(tmp_path / "b", "b")

        with mock.patch("rebuild_atlases.time.sleep") as sleep:
            ra.rebuild_all(tmp_path, 128, verbose=False)

        sleep.assert_not_called()

    def test_deeply_nested_manifest_does_not_stop_batch(self, tmp_path):
        make_atlas(tmp_path / "a", "nested", manifest="[" * 100000 + "]" * 100000)
        make_atlas(tmp_path / "b", "blocks")

        results = ra.rebuild_all(tmp_path, 128, verbose=False)

        assert [r.outcome for r in results] == [ra.FAILED, ra.SUCCESS]
        assert (tmp_path / "b" / "blocks.png").exists()

    def test_oversized_tile_fails_before_loading_sprites(self, tmp_path):
        make_atlas(tmp_path / "a", "huge",
                   manifest=json.dumps({"spriteFolder": "sprites", "tileSize": 100000}))
        make_atlas(tmp_path / "b", "blocks")

        with mock.patch("voxel_atlas.scan_sprites", wraps=voxel_atlas.scan_sprites) as scan:
            results = ra.rebuild_all(tmp_path, 128, verbose=False)

        assert [r.outcome for r in results] == [ra.FAILED, ra.SUCCESS]
        assert "100000" in results[0].error
        assert scan.call_count == 1
        assert not (tmp_path / "a" / "huge.png").exists()

    def test_verbose_output(self, tmp_path, capsys):
        make_atlas(tmp_path / "a", "good")
        make_atlas(tmp_path / "b", "bad", manifest="[]")

        ra.rebuild_all(tmp_path, 128)

        captured = capsys.readouterr()
        assert "OK:" in captured.out
        assert "good.png" in captured.out
        assert "FAILED:" in captured.err
