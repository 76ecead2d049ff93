from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .bus import DomainEvent
from ..domain.models import ThumbnailRecord


@dataclass(frozen=True)
class ThumbnailGeneratedEvent(DomainEvent):
    record: Optional[ThumbnailRecord] = None


@dataclass(frozen=True)
class ThumbnailErrorEvent(DomainEvent):
    original_path: str = ""
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ThumbnailRemovedEvent(DomainEvent):
    original_path: str = ""
    thumbnail_path: Optional[Path] = None


@dataclass(frozen=True)
class CacheClearedEvent(DomainEvent):
    removed_files: int = 0


@dataclass(frozen=True)
class PregenerateProgressEvent(DomainEvent):
    processed: int = 0
    total: int = 0


@dataclass(frozen=True)
class OrphansCleanedEvent(DomainEvent):
    removed_count: int = 0


@dataclass(frozen=True)
class SettingsChangedEvent(DomainEvent):
    key: str = ""
    value: Any = None
