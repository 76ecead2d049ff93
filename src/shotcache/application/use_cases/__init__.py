from .base import CacheUseCase, UseCase, UseCaseRequest, UseCaseResponse
from .maintenance import (
    CacheStatsResponse,
    CleanupOrphansResponse,
    CleanupOrphansUseCase,
    ClearCacheResponse,
    ClearCacheUseCase,
    GetCacheStatsUseCase,
    PregenerateRequest,
    PregenerateResponse,
    PregenerateThumbnailsUseCase,
)
from .thumbnails import (
    GetThumbnailEncodedResponse,
    GetThumbnailEncodedUseCase,
    GetThumbnailResponse,
    GetThumbnailUseCase,
    RemoveThumbnailResponse,
    RemoveThumbnailUseCase,
    ThumbnailRequest,
)

__all__ = [
    "CacheStatsResponse",
    "CacheUseCase",
    "CleanupOrphansResponse",
    "CleanupOrphansUseCase",
    "ClearCacheResponse",
    "ClearCacheUseCase",
    "GetCacheStatsUseCase",
    "GetThumbnailEncodedResponse",
    "GetThumbnailEncodedUseCase",
    "GetThumbnailResponse",
    "GetThumbnailUseCase",
    "PregenerateRequest",
    "PregenerateResponse",
    "PregenerateThumbnailsUseCase",
    "RemoveThumbnailResponse",
    "RemoveThumbnailUseCase",
    "ThumbnailRequest",
    "UseCase",
    "UseCaseRequest",
    "UseCaseResponse",
]
