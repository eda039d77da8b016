from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

from locallibrary.utils.ids import new_id


class Author(BaseModel):
    """Bir yazarı temsil eder."""

    collection: ClassVar[str] = "authors"
    columns: ClassVar[tuple] = ("id", "first_name", "family_name", "date_of_birth", "date_of_death")

    id: str = Field(default_factory=new_id)
    first_name: str
    family_name: str
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None

    @property
    def name(self) -> str:
        # Adlardan biri eksikse boş dize döndür
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def lifespan(self) -> str:
        born = self.date_of_birth.strftime("%b %d, %Y") if self.date_of_birth else ""
        died = self.date_of_death.strftime("%b %d, %Y") if self.date_of_death else ""
        if not born and not died:
            return ""
        return f"{born} - {died}"

    @property
    def url(self) -> str:
        return f"/catalog/author/{self.id}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "date_of_death": self.date_of_death.isoformat() if self.date_of_death else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "Author":
        return Author(
            id=data["id"],
            first_name=data["first_name"],
            family_name=data["family_name"],
            date_of_birth=data.get("date_of_birth"),
            date_of_death=data.get("date_of_death"),
        )
