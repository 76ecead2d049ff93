"""Stub collaborators shared by the cache tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import List, Optional

from shotcache.domain.models import ImageSize, RenderOptions
from shotcache.events.bus import DomainEvent, EventBus


class RecordingGenerator:
    """Writes fake thumbnail bytes and counts invocations.

    When *gate* is given each call signals *started* and blocks until the
    gate is set, which lets tests hold a generation in flight.
    """

    def __init__(
        self,
        *,
        gate: Optional[threading.Event] = None,
        error: Optional[Exception] = None,
        size: ImageSize = ImageSize(200, 100),
    ):
        self.gate = gate
        self.error = error
        self.size = size
        self.started = threading.Event()
        self.calls: List[Path] = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def generate(self, original: Path, destination: Path, options: RenderOptions) -> ImageSize:
        with self._lock:
            self.calls.append(original)
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.error is not None:
            raise self.error
        destination.write_bytes(f"thumb:{original.name}:{options.width}x{options.height}".encode())
        return self.size


class EventRecorder:
    """Collects every event published on a bus, in delivery order."""

    def __init__(self, bus: EventBus):
        self.events: List[DomainEvent] = []
        self._lock = threading.Lock()
        bus.subscribe(DomainEvent, self._record)

    def _record(self, event: DomainEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type: type) -> list:
        with self._lock:
            return [event for event in self.events if isinstance(event, event_type)]
