"""Disk thumbnail cache with per-key generation deduplication."""

from __future__ import annotations

import base64
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from shotcache.config import (
    IN_FLIGHT_WAIT_TIMEOUT_SEC,
    PREGENERATE_BATCH_PAUSE_SEC,
    PREGENERATE_BATCH_SIZE,
    THUMBNAIL_MIME_TYPE,
)
from shotcache.domain.models import CacheStats, OptionsLike, RenderOptions, ThumbnailRecord
from shotcache.errors import (
    CacheDirectoryError,
    CacheNotInitializedError,
    GenerationTimeoutError,
)
from shotcache.errors.handler import ErrorHandler, ErrorSeverity
from shotcache.events.bus import EventBus
from shotcache.events.thumbnail_events import (
    CacheClearedEvent,
    OrphansCleanedEvent,
    PregenerateProgressEvent,
    ThumbnailErrorEvent,
    ThumbnailGeneratedEvent,
    ThumbnailRemovedEvent,
)
from shotcache.infrastructure.services.cache_keys import (
    PathLike,
    derive_key,
    derive_path,
    is_thumbnail_file,
)
from shotcache.infrastructure.services.freshness import is_valid
from shotcache.infrastructure.services.thumbnail_generator import (
    PillowThumbnailGenerator,
    ThumbnailGenerator,
)

LOGGER = logging.getLogger(__name__)


class _Generation:
    """In-flight marker shared by the generating request and its waiters."""

    __slots__ = ("done", "result")

    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Optional[Path] = None


class ThumbnailCache:
    """Produce, persist and reuse thumbnails for original image files.

    The thumbnail file and its mtime are the source of truth: a request is
    served from disk whenever the file is at least as new as the original,
    whether or not this process generated it.  The in-memory record index
    only describes thumbnails generated by the running process and is used
    for orphan cleanup and introspection.

    At most one generation runs per cache key.  Requests arriving while the
    key is being generated wait for that generation (bounded by
    *wait_timeout*) and receive its outcome instead of starting their own.
    All public operations are safe to call from multiple threads.
    """

    def __init__(
        self,
        cache_dir: Path,
        generator: Optional[ThumbnailGenerator] = None,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        default_options: Optional[RenderOptions] = None,
        *,
        batch_size: int = PREGENERATE_BATCH_SIZE,
        batch_pause: float = PREGENERATE_BATCH_PAUSE_SEC,
        wait_timeout: float = IN_FLIGHT_WAIT_TIMEOUT_SEC,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self._cache_dir = Path(cache_dir)
        self._generator = generator or PillowThumbnailGenerator()
        self._events = event_bus or EventBus()
        self._errors = error_handler or ErrorHandler(LOGGER, self._events)
        self._defaults = default_options or RenderOptions()
        self._batch_size = batch_size
        self._batch_pause = batch_pause
        self._wait_timeout = wait_timeout

        self._records: Dict[str, ThumbnailRecord] = {}
        self._in_flight: Dict[str, _Generation] = {}
        self._lock = threading.Lock()
        self._initialized = False

    # ------------------------------------------------------------------
    # Setup and introspection
    # ------------------------------------------------------------------
    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def event_bus(self) -> EventBus:
        return self._events

    @property
    def default_options(self) -> RenderOptions:
        return self._defaults

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """Create the cache directory; must succeed before thumbnails are written."""

        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._errors.handle(
                CacheDirectoryError(f"Cannot create thumbnail cache directory: {exc}"),
                ErrorSeverity.ERROR,
                {"source": "initialize", "cache_dir": str(self._cache_dir)},
            )
            return False
        self._initialized = True
        LOGGER.debug("Thumbnail cache ready at %s", self._cache_dir)
        return True

    def resolve_options(self, options: OptionsLike = None) -> RenderOptions:
        return self._defaults.merged(options)

    def thumbnail_path_for(self, original_path: PathLike, options: OptionsLike = None) -> Path:
        key = derive_key(original_path, self.resolve_options(options))
        return derive_path(self._cache_dir, key)

    def records(self) -> List[ThumbnailRecord]:
        with self._lock:
            return list(self._records.values())

    def get_record(self, original_path: PathLike, options: OptionsLike = None) -> Optional[ThumbnailRecord]:
        key = derive_key(original_path, self.resolve_options(options))
        with self._lock:
            return self._records.get(key)

    def is_generating(self, original_path: PathLike, options: OptionsLike = None) -> bool:
        key = derive_key(original_path, self.resolve_options(options))
        with self._lock:
            return key in self._in_flight

    # ------------------------------------------------------------------
    # Lookup and generation
    # ------------------------------------------------------------------
    def get_thumbnail(self, original_path: PathLike, options: OptionsLike = None) -> Optional[Path]:
        """Return the thumbnail path for *original_path*, generating it if needed.

        Returns ``None`` when the thumbnail could not be produced; the reason
        is published as a :class:`ThumbnailErrorEvent`.  Invalid *options*
        raise :class:`~shotcache.errors.InvalidRenderOptionsError`.
        """

        resolved = self.resolve_options(options)
        key = derive_key(original_path, resolved)
        path = derive_path(self._cache_dir, key)

        with self._lock:
            pending = self._in_flight.get(key)
        if pending is not None:
            return self._await(original_path, pending)

        if is_valid(original_path, path):
            return path

        with self._lock:
            pending = self._in_flight.get(key)
            if pending is None:
                claim = self._in_flight[key] = _Generation()
        if pending is not None:
            return self._await(original_path, pending)

        try:
            # A generation for this key may have finished since the check above.
            if is_valid(original_path, path):
                claim.result = path
            else:
                claim.result = self._generate(original_path, key, path, resolved)
            return claim.result
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            claim.done.set()

    def get_thumbnail_encoded(self, original_path: PathLike, options: OptionsLike = None) -> Optional[str]:
        """Return the thumbnail as a ``data:`` URI, or ``None`` when unavailable."""

        path = self.get_thumbnail(original_path, options)
        if path is None:
            return None
        try:
            payload = path.read_bytes()
        except OSError as exc:
            LOGGER.warning("Failed to read thumbnail %s: %s", path, exc)
            return None
        encoded = base64.b64encode(payload).decode("ascii")
        return f"data:{THUMBNAIL_MIME_TYPE};base64,{encoded}"

    def _await(self, original_path: PathLike, pending: _Generation) -> Optional[Path]:
        if not pending.done.wait(self._wait_timeout):
            error = GenerationTimeoutError(
                f"Gave up after {self._wait_timeout:g}s waiting for the thumbnail of {original_path}"
            )
            LOGGER.warning("%s", error)
            self._publish_error(original_path, error)
            return None
        result = pending.result
        if result is None or not result.exists():
            return None
        return result

    def _generate(
        self,
        original_path: PathLike,
        key: str,
        path: Path,
        options: RenderOptions,
    ) -> Optional[Path]:
        LOGGER.debug("Generating thumbnail for %s", original_path)
        try:
            if not self._initialized:
                raise CacheNotInitializedError(
                    f"Thumbnail cache at {self._cache_dir} has not been initialized"
                )
            size = self._generator.generate(Path(original_path), path, options)
            original_stat = os.stat(original_path)
        except Exception as exc:
            LOGGER.warning("Failed to generate thumbnail for %s: %s", original_path, exc)
            self._publish_error(original_path, exc)
            return None

        record = ThumbnailRecord(
            original_path=Path(original_path),
            thumbnail_path=path,
            original_modified_at=datetime.fromtimestamp(original_stat.st_mtime),
            generated_at=datetime.now(),
            size=size,
            options=options,
        )
        with self._lock:
            self._records[key] = record
        self._events.publish(ThumbnailGeneratedEvent(record=record, source=__name__))
        LOGGER.debug("Generated %s thumbnail %s", size, path)
        return path

    def _publish_error(self, original_path: PathLike, error: Exception) -> None:
        self._events.publish(
            ThumbnailErrorEvent(
                original_path=os.fspath(original_path),
                error=error,
                source=__name__,
            )
        )

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------
    def pregenerate(self, paths: Iterable[PathLike], options: OptionsLike = None) -> int:
        """Warm the cache for *paths* batch by batch; return how many succeeded.

        Each batch is generated concurrently and awaited as a whole before a
        :class:`PregenerateProgressEvent` is published for it.  A failing
        file never stops the remaining work.
        """

        pending = list(paths)
        resolved = self.resolve_options(options)
        total = len(pending)
        if total == 0:
            return 0

        LOGGER.info("Pregenerating thumbnails for %d files", total)
        produced = 0
        with ThreadPoolExecutor(
            max_workers=self._batch_size,
            thread_name_prefix="thumb-pregen",
        ) as executor:
            for start in range(0, total, self._batch_size):
                batch = pending[start:start + self._batch_size]
                futures = {
                    executor.submit(self.get_thumbnail, item, resolved): item
                    for item in batch
                }
                for future in as_completed(futures):
                    try:
                        if future.result() is not None:
                            produced += 1
                    except Exception as exc:
                        LOGGER.warning(
                            "Failed to pregenerate thumbnail for %s: %s",
                            futures[future],
                            exc,
                        )

                processed = min(start + self._batch_size, total)
                self._events.publish(
                    PregenerateProgressEvent(processed=processed, total=total, source=__name__)
                )
                if processed < total and self._batch_pause > 0:
                    time.sleep(self._batch_pause)

        LOGGER.info("Pregenerated %d of %d thumbnails", produced, total)
        return produced

    def clear_cache(self) -> int:
        """Delete every file in the cache directory and forget all records."""

        try:
            with os.scandir(self._cache_dir) as it:
                entries = [entry for entry in it if entry.is_file(follow_symlinks=False)]
        except OSError as exc:
            self._errors.handle(
                CacheDirectoryError(f"Cannot list thumbnail cache: {exc}"),
                ErrorSeverity.WARNING,
                {"source": "clear_cache", "cache_dir": str(self._cache_dir)},
            )
            return 0

        removed = 0
        failed: List[str] = []
        for entry in entries:
            try:
                os.unlink(entry.path)
            except FileNotFoundError:
                continue
            except OSError as exc:
                LOGGER.debug("Could not delete %s: %s", entry.path, exc)
                failed.append(entry.name)
                continue
            removed += 1

        with self._lock:
            self._records.clear()

        if failed:
            self._errors.handle(
                CacheDirectoryError(f"Could not delete {len(failed)} cached file(s)"),
                ErrorSeverity.WARNING,
                {"source": "clear_cache", "files": ", ".join(sorted(failed))},
            )
        LOGGER.info("Thumbnail cache cleared (%d files removed)", removed)
        self._events.publish(CacheClearedEvent(removed_files=removed, source=__name__))
        return removed

    def remove_thumbnail(self, original_path: PathLike, options: OptionsLike = None) -> None:
        """Delete the thumbnail for *original_path*; a missing file is not an error."""

        key = derive_key(original_path, self.resolve_options(options))
        path = derive_path(self._cache_dir, key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._errors.handle(
                CacheDirectoryError(f"Cannot delete thumbnail {path.name}: {exc}"),
                ErrorSeverity.WARNING,
                {"source": "remove_thumbnail", "original_path": os.fspath(original_path)},
            )
            return

        with self._lock:
            self._records.pop(key, None)
        self._events.publish(
            ThumbnailRemovedEvent(
                original_path=os.fspath(original_path),
                thumbnail_path=path,
                source=__name__,
            )
        )

    def get_cache_stats(self) -> CacheStats:
        """Count and size the thumbnail files on disk, ignoring the index."""

        count = 0
        size = 0
        try:
            with os.scandir(self._cache_dir) as it:
                for entry in it:
                    if not is_thumbnail_file(entry.name) or not entry.is_file():
                        continue
                    try:
                        size += entry.stat().st_size
                    except FileNotFoundError:
                        continue
                    count += 1
        except OSError as exc:
            LOGGER.warning("Cannot read thumbnail cache %s: %s", self._cache_dir, exc)
            return CacheStats(0, 0, self._cache_dir)
        return CacheStats(count, size, self._cache_dir)

    def cleanup_orphans(self) -> int:
        """Delete thumbnails that no live record with an existing original backs.

        Only records generated by this process are known, so after a restart
        every thumbnail not regenerated since is treated as an orphan.
        """

        try:
            with os.scandir(self._cache_dir) as it:
                names = [
                    entry.name
                    for entry in it
                    if is_thumbnail_file(entry.name) and entry.is_file()
                ]
        except OSError as exc:
            self._errors.handle(
                CacheDirectoryError(f"Cannot list thumbnail cache: {exc}"),
                ErrorSeverity.WARNING,
                {"source": "cleanup_orphans", "cache_dir": str(self._cache_dir)},
            )
            return 0

        with self._lock:
            by_name = {
                record.thumbnail_path.name: (key, record)
                for key, record in self._records.items()
            }

        removed = 0
        for name in names:
            key, record = by_name.get(name, (Path(name).stem, None))
            if record is not None and record.original_path.exists():
                continue
            with self._lock:
                # The key may have been claimed or regenerated since the snapshot.
                if key in self._in_flight or self._records.get(key) is not record:
                    continue
                try:
                    os.unlink(self._cache_dir / name)
                except FileNotFoundError:
                    continue
                except OSError as exc:
                    LOGGER.warning("Failed to delete orphaned thumbnail %s: %s", name, exc)
                    continue
                self._records.pop(key, None)
            removed += 1

        LOGGER.info("Cleaned up %d orphaned thumbnails", removed)
        self._events.publish(OrphansCleanedEvent(removed_count=removed, source=__name__))
        return removed
