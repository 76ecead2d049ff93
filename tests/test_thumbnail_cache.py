"""Tests for ThumbnailCache lookups, generation and error reporting."""

from __future__ import annotations

import base64
import os
from datetime import datetime
from pathlib import Path

import pytest

from helpers import EventRecorder, RecordingGenerator
from shotcache.domain.models import ImageSize, RenderOptions
from shotcache.errors import (
    CacheDirectoryError,
    CacheNotInitializedError,
    ImageDecodeError,
    InvalidRenderOptionsError,
)
from shotcache.errors.handler import ErrorOccurredEvent
from shotcache.events.bus import EventBus
from shotcache.events.thumbnail_events import ThumbnailErrorEvent, ThumbnailGeneratedEvent
from shotcache.infrastructure.services.cache_keys import derive_key, derive_path
from shotcache.infrastructure.services.thumbnail_cache import ThumbnailCache


def _make_stale(original: Path, thumbnail: Path) -> None:
    older = original.stat().st_mtime_ns - 2_000_000_000
    os.utime(thumbnail, ns=(older, older))


class TestInitialize:
    def test_creates_directory(self, tmp_path: Path):
        cache = ThumbnailCache(tmp_path / "a" / "b")
        assert not cache.initialized
        assert cache.initialize() is True
        assert (tmp_path / "a" / "b").is_dir()
        assert cache.initialized

    def test_idempotent(self, tmp_path: Path):
        cache = ThumbnailCache(tmp_path / "thumbs")
        assert cache.initialize()
        assert cache.initialize()

    def test_constructor_does_not_touch_disk(self, tmp_path: Path):
        ThumbnailCache(tmp_path / "thumbs")
        assert not (tmp_path / "thumbs").exists()

    def test_failure_is_reported(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")
        bus = EventBus()
        recorder = EventRecorder(bus)
        cache = ThumbnailCache(blocker / "thumbs", event_bus=bus)

        assert cache.initialize() is False
        assert not cache.initialized
        [event] = recorder.of_type(ErrorOccurredEvent)
        assert isinstance(event.error, CacheDirectoryError)
        assert event.source == "initialize"

    def test_rejects_bad_batch_size(self, tmp_path: Path):
        with pytest.raises(ValueError):
            ThumbnailCache(tmp_path, batch_size=0)


class TestGetThumbnail:
    def test_generates_on_miss(self, make_cache, make_image, cache_dir: Path):
        generator = RecordingGenerator()
        cache = make_cache(generator)
        original = make_image()

        result = cache.get_thumbnail(original)

        expected = derive_path(cache_dir, derive_key(original, RenderOptions()))
        assert result == expected
        assert expected.exists()
        assert generator.call_count == 1

    def test_reuses_valid_thumbnail(self, make_cache, make_image):
        generator = RecordingGenerator()
        cache = make_cache(generator)
        original = make_image()

        first = cache.get_thumbnail(original)
        second = cache.get_thumbnail(original)

        assert first == second
        assert generator.call_count == 1

    def test_regenerates_when_original_changes(self, make_cache, make_image):
        generator = RecordingGenerator()
        cache = make_cache(generator)
        original = make_image()
        thumbnail = cache.get_thumbnail(original)

        _make_stale(original, thumbnail)
        assert cache.get_thumbnail(original) == thumbnail
        assert generator.call_count == 2

    def test_cold_index_serves_existing_file(self, make_cache, make_image):
        original = make_image()
        warm = make_cache(RecordingGenerator())
        thumbnail = warm.get_thumbnail(original)

        generator = RecordingGenerator()
        cold = make_cache(generator)
        assert cold.records() == []
        assert cold.get_thumbnail(original) == thumbnail
        assert generator.call_count == 0

    def test_options_select_distinct_files(self, make_cache, make_image):
        generator = RecordingGenerator()
        cache = make_cache(generator)
        original = make_image()

        small = cache.get_thumbnail(original, {"width": 64, "height": 64})
        default = cache.get_thumbnail(original)
        better = cache.get_thumbnail(original, {"quality": 95})

        assert len({small, default, better}) == 3
        assert generator.call_count == 3

    def test_default_options_come_from_cache(self, make_cache, make_image, cache_dir: Path):
        cache = make_cache(RecordingGenerator(), default_options=RenderOptions(96, 96, 60))
        original = make_image()

        result = cache.get_thumbnail(original, {"quality": 70})

        assert result == derive_path(cache_dir, derive_key(original, RenderOptions(96, 96, 70)))

    def test_invalid_options_raise(self, make_cache, make_image):
        generator = RecordingGenerator()
        cache = make_cache(generator)
        with pytest.raises(InvalidRenderOptionsError):
            cache.get_thumbnail(make_image(), {"width": 0})
        assert generator.call_count == 0

    def test_records_generation(self, make_cache, make_image):
        bus = EventBus()
        recorder = EventRecorder(bus)
        cache = make_cache(RecordingGenerator(size=ImageSize(200, 100)), event_bus=bus)
        original = make_image()

        thumbnail = cache.get_thumbnail(original)

        record = cache.get_record(original)
        assert record is not None
        assert record.original_path == original
        assert record.thumbnail_path == thumbnail
        assert record.size == ImageSize(200, 100)
        assert record.options == RenderOptions()
        assert record.original_modified_at == datetime.fromtimestamp(original.stat().st_mtime)
        assert record.generated_at <= datetime.now()
        [event] = recorder.of_type(ThumbnailGeneratedEvent)
        assert event.record == record

    def test_with_pillow(self, make_cache, make_image):
        cache = make_cache()
        original = make_image("wide.png", (4000, 2000))

        thumbnail = cache.get_thumbnail(original)

        assert thumbnail is not None
        assert cache.get_record(original).size == ImageSize(200, 100)


class TestGenerationFailures:
    def test_failure_returns_none_and_publishes(self, make_cache, make_image):
        bus = EventBus()
        recorder = EventRecorder(bus)
        error = ImageDecodeError("bad pixels")
        cache = make_cache(RecordingGenerator(error=error), event_bus=bus)
        original = make_image()

        assert cache.get_thumbnail(original) is None

        [event] = recorder.of_type(ThumbnailErrorEvent)
        assert event.original_path == os.fspath(original)
        assert event.error is error
        assert recorder.of_type(ThumbnailGeneratedEvent) == []
        assert cache.records() == []

    def test_failure_releases_key(self, make_cache, make_image):
        generator = RecordingGenerator(error=RuntimeError("boom"))
        cache = make_cache(generator)
        original = make_image()

        cache.get_thumbnail(original)

        assert not cache.is_generating(original)
        # A later call is the retry mechanism.
        cache.get_thumbnail(original)
        assert generator.call_count == 2

    def test_missing_original(self, make_cache, tmp_path: Path):
        bus = EventBus()
        recorder = EventRecorder(bus)
        cache = make_cache(event_bus=bus)

        assert cache.get_thumbnail(tmp_path / "gone.png") is None
        [event] = recorder.of_type(ThumbnailErrorEvent)
        assert isinstance(event.error, ImageDecodeError)

    def test_corrupt_original(self, make_cache, tmp_path: Path):
        bus = EventBus()
        recorder = EventRecorder(bus)
        cache = make_cache(event_bus=bus)
        original = tmp_path / "corrupt.png"
        original.write_bytes(b"\x89PNG but not really")

        assert cache.get_thumbnail(original) is None
        assert len(recorder.of_type(ThumbnailErrorEvent)) == 1

    def test_uninitialized_cache_reports_error(self, make_image, cache_dir: Path):
        bus = EventBus()
        recorder = EventRecorder(bus)
        generator = RecordingGenerator()
        cache = ThumbnailCache(cache_dir, generator=generator, event_bus=bus)

        assert cache.get_thumbnail(make_image()) is None
        [event] = recorder.of_type(ThumbnailErrorEvent)
        assert isinstance(event.error, CacheNotInitializedError)
        assert generator.call_count == 0


class TestGetThumbnailEncoded:
    def test_data_uri(self, make_cache, make_image):
        cache = make_cache(RecordingGenerator())
        original = make_image()

        encoded = cache.get_thumbnail_encoded(original)

        prefix = "data:image/jpeg;base64,"
        assert encoded.startswith(prefix)
        payload = base64.b64decode(encoded[len(prefix):])
        assert payload == cache.get_thumbnail(original).read_bytes()

    def test_failure_returns_none(self, make_cache, make_image):
        cache = make_cache(RecordingGenerator(error=RuntimeError("boom")))
        assert cache.get_thumbnail_encoded(make_image()) is None

    def test_read_failure_returns_none(self, make_cache, make_image, monkeypatch):
        cache = make_cache(RecordingGenerator())
        original = make_image()
        cache.get_thumbnail(original)

        def _vanished(self):
            raise FileNotFoundError(self)

        monkeypatch.setattr(Path, "read_bytes", _vanished)
        assert cache.get_thumbnail_encoded(original) is None
