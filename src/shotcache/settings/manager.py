"""Settings file management with validation and change notifications."""

from __future__ import annotations

import json
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from jsonschema import ValidationError

from ..config import APP_NAME, CACHE_DIR_NAME
from ..domain.models import RenderOptions
from ..errors import SettingsLoadError, SettingsValidationError
from ..events.bus import EventBus
from ..events.thumbnail_events import SettingsChangedEvent
from .schema import DEFAULT_SETTINGS, merge_with_defaults


def _app_dir(*, roaming: bool) -> Path:
    if os.name == "nt":
        base = os.environ.get("APPDATA" if roaming else "LOCALAPPDATA")
        if base:
            return Path(base) / APP_NAME
        return Path.home() / "AppData" / ("Roaming" if roaming else "Local") / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    if roaming:
        base = os.environ.get("XDG_CONFIG_HOME")
        return (Path(base) if base else Path.home() / ".config") / APP_NAME
    base = os.environ.get("XDG_DATA_HOME")
    return (Path(base) if base else Path.home() / ".local" / "share") / APP_NAME


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    return _app_dir(roaming=True) / "settings.json"


def default_cache_dir() -> Path:
    """Return the default thumbnail directory for the current platform."""

    return _app_dir(roaming=False) / CACHE_DIR_NAME


class SettingsManager:
    """Load, validate and persist user settings for the thumbnail cache."""

    def __init__(self, path: Path | None = None, event_bus: Optional[EventBus] = None) -> None:
        self._path = path
        self._events = event_bus
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)

    @property
    def path(self) -> Path:
        return self._path or default_settings_path()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Load the settings JSON from disk, creating defaults if missing."""

        path = self.path
        self._path = path
        if path.exists():
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(f"Cannot read {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"{path} does not contain a JSON object")
        else:
            payload = None
        try:
            self._data = merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        self._write()

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        target = self._data
        parts = key.split(".")
        for index, part in enumerate(parts):
            if not isinstance(target, dict) or part not in target:
                return default
            value = target[part]
            if index == len(parts) - 1:
                return value
            target = value
        return default

    def set(self, key: str, value: Any) -> None:
        """Update *key* with *value*, validate, persist and announce the change."""

        if isinstance(value, Path):
            value = str(value)

        candidate = deepcopy(self._data)
        parts = key.split(".")
        target: dict[str, Any] = candidate
        for part in parts[:-1]:
            branch = target.get(part)
            if not isinstance(branch, dict):
                branch = {}
                target[part] = branch
            target = branch
        target[parts[-1]] = value
        try:
            self._data = merge_with_defaults(candidate)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        self._write()
        if self._events is not None:
            self._events.publish(SettingsChangedEvent(key=key, value=value, source=__name__))

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------
    def cache_directory(self) -> Path:
        configured = self.get("cache_directory")
        if configured:
            return Path(configured).expanduser()
        return default_cache_dir()

    def render_options(self) -> RenderOptions:
        return RenderOptions(**self.get("thumbnail"))

    def batch_size(self) -> int:
        return int(self.get("pregenerate.batch_size"))

    def batch_pause(self) -> float:
        return float(self.get("pregenerate.batch_pause_ms")) / 1000

    def wait_timeout(self) -> float:
        return float(self.get("wait_timeout_sec"))

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _write(self) -> None:
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise SettingsLoadError(f"Cannot write {path}: {exc}") from exc


__all__ = ["SettingsManager", "default_cache_dir", "default_settings_path"]
