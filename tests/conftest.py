import sys
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make the sources importable without an editable install.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture()
def make_image(tmp_path: Path):
    """Return a helper that writes a solid-colour image and returns its path."""

    def _make(name: str = "shot.png", size: tuple[int, int] = (400, 200), color=(200, 40, 40)) -> Path:
        path = tmp_path / "originals" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color).save(path)
        return path

    return _make


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "thumbnails"


@pytest.fixture()
def make_cache(cache_dir: Path):
    """Return a factory for initialised caches backed by *cache_dir*."""

    from shotcache.events.bus import EventBus
    from shotcache.infrastructure.services.thumbnail_cache import ThumbnailCache

    def _make(generator=None, **kwargs) -> ThumbnailCache:
        kwargs.setdefault("event_bus", EventBus())
        kwargs.setdefault("batch_pause", 0)
        cache = ThumbnailCache(cache_dir, generator=generator, **kwargs)
        assert cache.initialize()
        return cache

    return _make
