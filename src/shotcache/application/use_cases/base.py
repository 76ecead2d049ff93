import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from shotcache.domain.models import RenderOptions
from shotcache.errors import CacheNotInitializedError, InvalidRenderOptionsError
from shotcache.infrastructure.services.thumbnail_cache import ThumbnailCache

LOGGER = logging.getLogger(__name__)

NOT_INITIALIZED = "Thumbnail cache not initialized"


@dataclass(frozen=True)
class UseCaseRequest:
    """Use Case input DTO base."""
    pass


@dataclass(frozen=True)
class UseCaseResponse:
    """Use Case output DTO base."""
    success: bool = True
    error: Optional[str] = None


class UseCase(ABC):
    """Use Case base class."""

    @abstractmethod
    def execute(self, request: UseCaseRequest) -> UseCaseResponse:
        ...


class CacheUseCase(UseCase):
    """Use case operating on a :class:`ThumbnailCache` that may be missing.

    The front-end can issue requests before the cache has been created, or
    after its directory failed to initialise; those calls are answered with
    an unsuccessful response instead of an exception.
    """

    def __init__(self, cache: Optional[ThumbnailCache]):
        self._cache = cache

    def _require_cache(self) -> ThumbnailCache:
        if self._cache is None or not self._cache.initialized:
            raise CacheNotInitializedError(NOT_INITIALIZED)
        return self._cache

    def _resolve_options(self, payload: Optional[Mapping[str, Any]]) -> RenderOptions:
        cache = self._require_cache()
        if payload is not None and not isinstance(payload, Mapping):
            raise InvalidRenderOptionsError(
                f"options must be a mapping, got {type(payload).__name__}"
            )
        return cache.resolve_options(payload)

    @staticmethod
    def _failure(response_type: type, operation: str, exc: Exception) -> Any:
        if isinstance(exc, (CacheNotInitializedError, InvalidRenderOptionsError)):
            LOGGER.warning("%s rejected: %s", operation, exc)
        else:
            LOGGER.error("%s failed", operation, exc_info=exc)
        return response_type(success=False, error=str(exc))
