from .bus import DomainEvent, EventBus, Subscription
from .thumbnail_events import (
    CacheClearedEvent,
    OrphansCleanedEvent,
    PregenerateProgressEvent,
    SettingsChangedEvent,
    ThumbnailErrorEvent,
    ThumbnailGeneratedEvent,
    ThumbnailRemovedEvent,
)

__all__ = [
    "CacheClearedEvent",
    "DomainEvent",
    "EventBus",
    "OrphansCleanedEvent",
    "PregenerateProgressEvent",
    "SettingsChangedEvent",
    "Subscription",
    "ThumbnailErrorEvent",
    "ThumbnailGeneratedEvent",
    "ThumbnailRemovedEvent",
]
