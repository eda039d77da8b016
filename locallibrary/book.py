from __future__ import annotations

import json
from typing import Any, ClassVar, List, Union

from pydantic import BaseModel, Field, field_validator

from locallibrary.author import Author
from locallibrary.genre import Genre
from locallibrary.utils.ids import new_id


def ensure_list(value: Any) -> list:
    """Çok değerli bir alanı listeye zorla.

    Yok -> boş liste, tek değer -> tek elemanlı liste, liste -> değişmeden.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


class Book(BaseModel):
    """Kütüphanedeki tek bir kitap belgesini temsil eder.

    `author` ve `genre` kimlik olarak saklanır; katalog bunları
    Author/Genre nesneleriyle doldurabilir (populate).
    """

    collection: ClassVar[str] = "books"
    columns: ClassVar[tuple] = ("id", "title", "author", "summary", "isbn", "genre")

    id: str = Field(default_factory=new_id)
    title: str
    author: Union[str, Author]
    summary: str = ""
    isbn: str = ""
    genre: List[Union[str, Genre]] = Field(default_factory=list)

    @field_validator("genre", mode="before")
    @classmethod
    def _coerce_genre(cls, value: Any) -> list:
        return ensure_list(value)

    @property
    def url(self) -> str:
        return f"/catalog/book/{self.id}"

    @property
    def author_id(self) -> str:
        if isinstance(self.author, Author):
            return self.author.id
        return self.author

    @property
    def genre_ids(self) -> List[str]:
        return [g.id if isinstance(g, Genre) else str(g) for g in self.genre]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author_id,
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": json.dumps(self.genre_ids),
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # SQLite'tan gelen JSON dize alanını Python listesine normalleştirin
        genre = data.get("genre")
        if isinstance(genre, str):
            genre = json.loads(genre) if genre else []
        return Book(
            id=data["id"],
            title=data.get("title") or "",
            author=data.get("author") or "",
            summary=data.get("summary") or "",
            isbn=data.get("isbn") or "",
            genre=genre,
        )
