"""Custom exception hierarchy for shotcache."""

from __future__ import annotations


class ShotCacheError(Exception):
    """Base class for all custom errors raised by shotcache."""


# --- 3-layer hierarchy ---

class DomainError(ShotCacheError):
    """Base class for domain-level errors."""


class InfrastructureError(ShotCacheError):
    """Base class for infrastructure-level errors."""


class ApplicationError(ShotCacheError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvalidRenderOptionsError(DomainError, ValueError):
    """Raised when render options fall outside their accepted ranges."""


# --- Infrastructure errors ---

class CacheDirectoryError(InfrastructureError):
    """Raised when the cache directory cannot be created or listed."""


class ThumbnailGenerationError(InfrastructureError):
    """Raised when a thumbnail could not be produced for an original."""


class ImageDecodeError(ThumbnailGenerationError):
    """Raised when the original image is corrupt or in an unsupported format."""


class ThumbnailWriteError(ThumbnailGenerationError):
    """Raised when the encoded thumbnail cannot be written to the cache."""


class GenerationTimeoutError(InfrastructureError):
    """Raised when waiting on another request's generation takes too long."""


# --- Application errors ---

class CacheNotInitializedError(ApplicationError):
    """Raised when a request arrives before the cache has been set up."""


# --- Settings ---

class SettingsError(ShotCacheError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "ApplicationError",
    "CacheDirectoryError",
    "CacheNotInitializedError",
    "DomainError",
    "GenerationTimeoutError",
    "ImageDecodeError",
    "InfrastructureError",
    "InvalidRenderOptionsError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "ShotCacheError",
    "ThumbnailGenerationError",
    "ThumbnailWriteError",
]
