from __future__ import annotations

from datetime import date
from enum import Enum
from typing import ClassVar, Union

from pydantic import BaseModel, Field

from locallibrary.book import Book
from locallibrary.utils.ids import new_id


class InstanceStatus(str, Enum):
    """Bir kitap kopyasının ödünç durumu"""
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


class BookInstance(BaseModel):
    """Bir kitabın ödünç verilebilir tek bir fiziksel kopyası."""

    collection: ClassVar[str] = "bookinstances"
    columns: ClassVar[tuple] = ("id", "book", "imprint", "status", "due_back")

    id: str = Field(default_factory=new_id)
    book: Union[str, Book]
    imprint: str
    status: InstanceStatus = InstanceStatus.MAINTENANCE
    due_back: date = Field(default_factory=date.today)

    @property
    def url(self) -> str:
        return f"/catalog/bookinstance/{self.id}"

    @property
    def book_id(self) -> str:
        if isinstance(self.book, Book):
            return self.book.id
        return self.book

    @property
    def due_back_formatted(self) -> str:
        return self.due_back.strftime("%b %d, %Y")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "book": self.book_id,
            "imprint": self.imprint,
            "status": self.status.value,
            "due_back": self.due_back.isoformat(),
        }

    @staticmethod
    def from_dict(data: dict) -> "BookInstance":
        return BookInstance(
            id=data["id"],
            book=data["book"],
            imprint=data["imprint"],
            status=data.get("status") or InstanceStatus.MAINTENANCE,
            due_back=data.get("due_back") or date.today(),
        )
