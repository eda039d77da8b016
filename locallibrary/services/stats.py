from typing import Any, Dict

from locallibrary.author import Author
from locallibrary.book import Book
from locallibrary.bookinstance import BookInstance, InstanceStatus
from locallibrary.catalog import Catalog
from locallibrary.genre import Genre
from locallibrary.services.aggregation import parallel


async def collect_stats(catalog: Catalog) -> Dict[str, Any]:
    """Ana sayfa panosundaki beş bağımsız sayımı paralel olarak topla."""
    return await parallel({
        "book_count": catalog.count(Book),
        "book_instance_count": catalog.count(BookInstance),
        "book_instance_available_count": catalog.count(BookInstance, {"status": InstanceStatus.AVAILABLE}),
        "author_count": catalog.count(Author),
        "genre_count": catalog.count(Genre),
    })
