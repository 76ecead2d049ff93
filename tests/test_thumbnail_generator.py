"""Tests for the Pillow thumbnail pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from shotcache.domain.models import ImageSize, RenderOptions
from shotcache.errors import ImageDecodeError, ThumbnailGenerationError, ThumbnailWriteError
from shotcache.infrastructure.services.thumbnail_generator import (
    PillowThumbnailGenerator,
    compute_target_size,
)


class TestComputeTargetSize:
    @pytest.mark.parametrize(
        "source,expected",
        [
            (ImageSize(4000, 2000), ImageSize(200, 100)),
            (ImageSize(2000, 4000), ImageSize(100, 200)),
            (ImageSize(200, 200), ImageSize(200, 200)),
        ],
    )
    def test_fits_square_box(self, source, expected):
        assert compute_target_size(source, ImageSize(200, 200)) == expected

    def test_one_side_matches_bound(self):
        result = compute_target_size(ImageSize(3000, 1234), ImageSize(300, 300))
        assert result.width == 300
        assert result.height == 123

    def test_derived_side_rounds_half_up(self):
        assert compute_target_size(ImageSize(3000, 1235), ImageSize(300, 300)) == ImageSize(300, 124)

    def test_square_source_uses_height(self):
        assert compute_target_size(ImageSize(500, 500), ImageSize(300, 120)) == ImageSize(120, 120)

    def test_extreme_ratio_keeps_one_pixel(self):
        assert compute_target_size(ImageSize(10000, 1), ImageSize(200, 200)) == ImageSize(200, 1)
        assert compute_target_size(ImageSize(1, 10000), ImageSize(200, 200)) == ImageSize(1, 200)


class TestPillowThumbnailGenerator:
    @pytest.fixture()
    def cache_dir(self, tmp_path: Path) -> Path:
        path = tmp_path / "thumbs"
        path.mkdir()
        return path

    def test_landscape(self, make_image, cache_dir: Path):
        original = make_image("wide.png", (4000, 2000))
        destination = cache_dir / "wide.jpg"
        size = PillowThumbnailGenerator().generate(original, destination, RenderOptions())
        assert size == ImageSize(200, 100)
        with Image.open(destination) as img:
            assert img.size == (200, 100)
            assert img.format == "JPEG"

    def test_portrait(self, make_image, cache_dir: Path):
        original = make_image("tall.png", (2000, 4000))
        destination = cache_dir / "tall.jpg"
        size = PillowThumbnailGenerator().generate(original, destination, RenderOptions())
        assert size == ImageSize(100, 200)
        with Image.open(destination) as img:
            assert img.size == (100, 200)

    def test_converts_transparent_images(self, tmp_path: Path, cache_dir: Path):
        original = tmp_path / "alpha.png"
        Image.new("RGBA", (300, 150), (0, 0, 255, 128)).save(original)
        destination = cache_dir / "alpha.jpg"
        PillowThumbnailGenerator().generate(original, destination, RenderOptions(100, 100, 80))
        with Image.open(destination) as img:
            assert img.mode == "RGB"
            assert img.size == (100, 50)

    def test_quality_affects_output(self, tmp_path: Path, cache_dir: Path):
        original = tmp_path / "noise.png"
        Image.effect_noise((400, 400), 64).convert("RGB").save(original)
        low = cache_dir / "low.jpg"
        high = cache_dir / "high.jpg"
        generator = PillowThumbnailGenerator()
        generator.generate(original, low, RenderOptions(quality=10))
        generator.generate(original, high, RenderOptions(quality=95))
        assert low.stat().st_size < high.stat().st_size

    def test_corrupt_image(self, tmp_path: Path, cache_dir: Path):
        original = tmp_path / "broken.png"
        original.write_bytes(b"definitely not a png")
        with pytest.raises(ImageDecodeError):
            PillowThumbnailGenerator().generate(original, cache_dir / "x.jpg", RenderOptions())
        assert not (cache_dir / "x.jpg").exists()

    def test_unconvertible_mode(self, tmp_path: Path, cache_dir: Path, monkeypatch):
        original = tmp_path / "alpha.png"
        Image.new("RGBA", (300, 150)).save(original)

        def _unsupported(self, *args, **kwargs):
            raise ValueError("conversion not supported")

        monkeypatch.setattr(Image.Image, "convert", _unsupported)
        with pytest.raises(ImageDecodeError):
            PillowThumbnailGenerator().generate(original, cache_dir / "x.jpg", RenderOptions())

    def test_missing_original(self, tmp_path: Path, cache_dir: Path):
        with pytest.raises(ThumbnailGenerationError):
            PillowThumbnailGenerator().generate(
                tmp_path / "missing.png", cache_dir / "x.jpg", RenderOptions()
            )

    def test_missing_cache_dir(self, make_image, tmp_path: Path):
        original = make_image()
        with pytest.raises(ThumbnailWriteError):
            PillowThumbnailGenerator().generate(
                original, tmp_path / "nowhere" / "x.jpg", RenderOptions()
            )

    def test_leaves_no_partial_files(self, make_image, cache_dir: Path):
        original = make_image()
        PillowThumbnailGenerator().generate(original, cache_dir / "k.jpg", RenderOptions())
        assert sorted(p.name for p in cache_dir.iterdir()) == ["k.jpg"]

    def test_overwrites_existing(self, make_image, cache_dir: Path):
        original = make_image(size=(400, 400))
        destination = cache_dir / "k.jpg"
        destination.write_bytes(b"stale")
        PillowThumbnailGenerator().generate(original, destination, RenderOptions(50, 50, 80))
        with Image.open(destination) as img:
            assert img.size == (50, 50)
