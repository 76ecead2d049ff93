from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .base import CacheUseCase, UseCaseRequest, UseCaseResponse


@dataclass(frozen=True)
class ThumbnailRequest(UseCaseRequest):
    file_path: str = ""
    options: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class GetThumbnailResponse(UseCaseResponse):
    thumbnail_path: Optional[Path] = None


@dataclass(frozen=True)
class GetThumbnailEncodedResponse(UseCaseResponse):
    data_uri: Optional[str] = None


@dataclass(frozen=True)
class RemoveThumbnailResponse(UseCaseResponse):
    pass


class GetThumbnailUseCase(CacheUseCase):
    """Return the thumbnail path; a generation failure is a successful ``None``."""

    def execute(self, request: ThumbnailRequest) -> GetThumbnailResponse:
        try:
            options = self._resolve_options(request.options)
            path = self._cache.get_thumbnail(request.file_path, options)
        except Exception as exc:
            return self._failure(GetThumbnailResponse, "thumbnail-get", exc)
        return GetThumbnailResponse(thumbnail_path=path)


class GetThumbnailEncodedUseCase(CacheUseCase):
    def execute(self, request: ThumbnailRequest) -> GetThumbnailEncodedResponse:
        try:
            options = self._resolve_options(request.options)
            data_uri = self._cache.get_thumbnail_encoded(request.file_path, options)
        except Exception as exc:
            return self._failure(GetThumbnailEncodedResponse, "thumbnail-get-base64", exc)
        return GetThumbnailEncodedResponse(data_uri=data_uri)


class RemoveThumbnailUseCase(CacheUseCase):
    def execute(self, request: ThumbnailRequest) -> RemoveThumbnailResponse:
        try:
            options = self._resolve_options(request.options)
            self._cache.remove_thumbnail(request.file_path, options)
        except Exception as exc:
            return self._failure(RemoveThumbnailResponse, "thumbnail-remove", exc)
        return RemoveThumbnailResponse()
