from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from locallibrary.utils.ids import new_id


class Genre(BaseModel):
    """Bir kitap türünü (kategori) temsil eder."""

    collection: ClassVar[str] = "genres"
    columns: ClassVar[tuple] = ("id", "name")

    id: str = Field(default_factory=new_id)
    name: str
    # Yalnızca formlarda kullanılır, kalıcı değildir
    checked: bool = Field(default=False, exclude=True)

    @property
    def url(self) -> str:
        return f"/catalog/genre/{self.id}"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @staticmethod
    def from_dict(data: dict) -> "Genre":
        return Genre(id=data["id"], name=data["name"])
