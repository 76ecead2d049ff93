"""Wiring helpers that assemble a ready-to-use thumbnail cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors.handler import ErrorHandler
from .events.bus import EventBus
from .infrastructure.services.thumbnail_cache import ThumbnailCache
from .infrastructure.services.thumbnail_generator import PillowThumbnailGenerator
from .settings.manager import SettingsManager

LOGGER = logging.getLogger(__name__)


def create_thumbnail_cache(
    settings: SettingsManager,
    event_bus: EventBus,
    cache_dir: Optional[Path] = None,
) -> ThumbnailCache:
    """Build a :class:`ThumbnailCache` from *settings* and initialise it.

    The returned cache is usable even when initialisation failed; its
    ``initialized`` flag is then ``False`` and the failure has already been
    published as an ``ErrorOccurredEvent``.
    """

    cache = ThumbnailCache(
        cache_dir or settings.cache_directory(),
        generator=PillowThumbnailGenerator(),
        event_bus=event_bus,
        error_handler=ErrorHandler(logging.getLogger("shotcache.cache"), event_bus),
        default_options=settings.render_options(),
        batch_size=settings.batch_size(),
        batch_pause=settings.batch_pause(),
        wait_timeout=settings.wait_timeout(),
    )
    cache.initialize()
    return cache


@dataclass
class AppContext:
    """Objects shared by the command handlers of one process."""

    settings_path: Optional[Path] = None
    cache_dir: Optional[Path] = None
    event_bus: EventBus = field(default_factory=EventBus)
    settings: SettingsManager = field(init=False)
    cache: ThumbnailCache = field(init=False)

    def __post_init__(self) -> None:
        self.settings = SettingsManager(self.settings_path, event_bus=self.event_bus)
        self.settings.load()
        self.cache = create_thumbnail_cache(self.settings, self.event_bus, self.cache_dir)
        LOGGER.debug("Using thumbnail cache %s", self.cache.cache_dir)

    def close(self) -> None:
        self.event_bus.shutdown()
