"""Schema helpers for the shotcache settings file."""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    DEFAULT_THUMB_HEIGHT,
    DEFAULT_THUMB_QUALITY,
    DEFAULT_THUMB_WIDTH,
    IN_FLIGHT_WAIT_TIMEOUT_SEC,
    PREGENERATE_BATCH_PAUSE_SEC,
    PREGENERATE_BATCH_SIZE,
)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "shotcache/settings.schema.json",
    "type": "object",
    "required": ["schema", "thumbnail", "pregenerate"],
    "properties": {
        "schema": {"const": "shotcache/settings@1"},
        "cache_directory": {"type": ["string", "null"]},
        "thumbnail": {
            "type": "object",
            "properties": {
                "width": {"type": "integer", "minimum": 1},
                "height": {"type": "integer", "minimum": 1},
                "quality": {"type": "integer", "minimum": 1, "maximum": 100},
            },
            "additionalProperties": False,
        },
        "pregenerate": {
            "type": "object",
            "properties": {
                "batch_size": {"type": "integer", "minimum": 1},
                "batch_pause_ms": {"type": "number", "minimum": 0},
            },
            "additionalProperties": False,
        },
        "wait_timeout_sec": {"type": "number", "exclusiveMinimum": 0},
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "shotcache/settings@1",
    "cache_directory": None,
    "thumbnail": {
        "width": DEFAULT_THUMB_WIDTH,
        "height": DEFAULT_THUMB_HEIGHT,
        "quality": DEFAULT_THUMB_QUALITY,
    },
    "pregenerate": {
        "batch_size": PREGENERATE_BATCH_SIZE,
        "batch_pause_ms": PREGENERATE_BATCH_PAUSE_SEC * 1000,
    },
    "wait_timeout_sec": IN_FLIGHT_WAIT_TIMEOUT_SEC,
}

_NESTED_SECTIONS = ("thumbnail", "pregenerate")

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _NESTED_SECTIONS and isinstance(value, dict):
                merged.setdefault(key, {}).update(value)
                continue
            if key == "cache_directory" and value not in {None, ""}:
                try:
                    merged[key] = os.fspath(value)
                except TypeError:
                    continue
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
