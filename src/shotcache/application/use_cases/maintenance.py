from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from shotcache.domain.models import CacheStats

from .base import CacheUseCase, UseCaseRequest, UseCaseResponse


@dataclass(frozen=True)
class PregenerateRequest(UseCaseRequest):
    file_paths: List[str] = field(default_factory=list)
    options: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class PregenerateResponse(UseCaseResponse):
    generated_count: int = 0
    total: int = 0


@dataclass(frozen=True)
class CacheStatsResponse(UseCaseResponse):
    stats: Optional[CacheStats] = None


@dataclass(frozen=True)
class ClearCacheResponse(UseCaseResponse):
    removed_files: int = 0


@dataclass(frozen=True)
class CleanupOrphansResponse(UseCaseResponse):
    removed_count: int = 0


class PregenerateThumbnailsUseCase(CacheUseCase):
    """Warm the cache; progress is reported through ``PregenerateProgressEvent``."""

    def execute(self, request: PregenerateRequest) -> PregenerateResponse:
        try:
            options = self._resolve_options(request.options)
            generated = self._cache.pregenerate(request.file_paths, options)
        except Exception as exc:
            return self._failure(PregenerateResponse, "thumbnail-pregenerate", exc)
        return PregenerateResponse(generated_count=generated, total=len(request.file_paths))


class GetCacheStatsUseCase(CacheUseCase):
    def execute(self, request: Optional[UseCaseRequest] = None) -> CacheStatsResponse:
        try:
            stats = self._require_cache().get_cache_stats()
        except Exception as exc:
            return self._failure(CacheStatsResponse, "thumbnail-cache-stats", exc)
        return CacheStatsResponse(stats=stats)


class ClearCacheUseCase(CacheUseCase):
    def execute(self, request: Optional[UseCaseRequest] = None) -> ClearCacheResponse:
        try:
            removed = self._require_cache().clear_cache()
        except Exception as exc:
            return self._failure(ClearCacheResponse, "thumbnail-clear-cache", exc)
        return ClearCacheResponse(removed_files=removed)


class CleanupOrphansUseCase(CacheUseCase):
    def execute(self, request: Optional[UseCaseRequest] = None) -> CleanupOrphansResponse:
        try:
            removed = self._require_cache().cleanup_orphans()
        except Exception as exc:
            return self._failure(CleanupOrphansResponse, "thumbnail-cleanup", exc)
        return CleanupOrphansResponse(removed_count=removed)
