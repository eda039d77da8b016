from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    INFRASTRUCTURE = "infrastructure"


# Hata türlerinin sınırda kullanılan HTTP durum kodları
STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INFRASTRUCTURE: 500,
}


class CatalogError(Exception):
    """Genel hata işleyicisine iletilen katalog hatalarının temel sınıfı."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(self, message: str, *, kind: ErrorKind | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self._status_code = status_code

    @property
    def status_code(self) -> int:
        if self._status_code is not None:
            return self._status_code
        return STATUS_BY_KIND.get(self.kind, 500)


class NotFoundError(CatalogError):
    """İstenen belge mevcut değil."""

    kind = ErrorKind.NOT_FOUND


class StorageError(CatalogError):
    """Veritabanı katmanından gelen hata."""

    kind = ErrorKind.INFRASTRUCTURE
