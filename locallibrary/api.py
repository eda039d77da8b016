import os
import shutil
import asyncio
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.datastructures import UploadFile

from locallibrary.author import Author
from locallibrary.book import Book, ensure_list
from locallibrary.bookinstance import BookInstance
from locallibrary.catalog import Catalog
from locallibrary.config import settings
from locallibrary.errors import CatalogError, NotFoundError
from locallibrary.genre import Genre
from locallibrary.services.aggregation import parallel
from locallibrary.services.stats import collect_stats
from locallibrary.utils.validators import (
    AUTHOR_RULES,
    BOOK_RULES,
    GENRE_RULES,
    FieldError,
    form_to_dict,
    validate_form,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

catalog = Catalog()

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)


# --- Hata Sınırı ---
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Katalog hatalarını genel hata sayfasına çevir (404, 500 ...)."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} başarısız: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.message} ({exc.status_code})")
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Error", "message": exc.message, "error": exc},
        status_code=exc.status_code,
    )


# --- Yardımcı Fonksiyonlar ---
def render(request: Request, name: str, **context: Any):
    return templates.TemplateResponse(request, name, context)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


async def _read_form(request: Request) -> Dict[str, Any]:
    return form_to_dict(await request.form())


def _mark_checked(genres: List[Genre], selected_ids: List[str]) -> None:
    """Seçili türleri işaretle.

    Depodan taze gelen türler aday kitaptakilerden farklı nesnelerdir;
    karşılaştırma kimlik değerine göre yapılır.
    """
    selected = {str(g) for g in selected_ids}
    for genre in genres:
        if str(genre.id) in selected:
            genre.checked = True


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _form_lookups():
    """Kitap formu için tüm yazarlar ve türler."""
    return parallel({
        "authors": catalog.find(Author, order_by="family_name"),
        "genres": catalog.find(Genre, order_by="name"),
    })


# --- Sağlık Kontrolü ---
@app.get("/health")
async def health():
    """Hafif sağlık uç noktası."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_books": await catalog.count(Book),
        "version": settings.app_version,
    }


@app.get("/")
async def root():
    return redirect("/catalog")


# ================================================================
# ANA SAYFA
# ================================================================
@app.get("/catalog", response_class=HTMLResponse)
async def index(request: Request):
    """Sayım panosu; bir sayım başarısız olsa bile hata görünüme aktarılır."""
    error: Optional[CatalogError] = None
    try:
        data = await collect_stats(catalog)
    except CatalogError as exc:
        data, error = {}, exc
    return render(request, "index.html", title="Local Library Home", error=error, data=data)


# ================================================================
# KİTAPLAR
# ================================================================
@app.get("/catalog/books", response_class=HTMLResponse)
async def book_list(request: Request):
    books = await catalog.find(Book, fields=("title", "author"), order_by="title", populate=("author",))
    return render(request, "book_list.html", title="Book List", book_list=books)


@app.get("/catalog/book/create", response_class=HTMLResponse)
async def book_create_get(request: Request):
    results = await _form_lookups()
    return render(request, "book_form.html", title="Create Book",
                  authors=results["authors"], genres=results["genres"], book=None, errors=None)


async def _render_book_form_errors(request: Request, title: str, book: Book, errors: List[FieldError]):
    results = await _form_lookups()
    _mark_checked(results["genres"], book.genre_ids)
    return render(request, "book_form.html", title=title,
                  authors=results["authors"], genres=results["genres"], book=book, errors=errors)


def _book_from_form(data: Dict[str, Any], book_id: Optional[str] = None) -> Book:
    values = {
        "title": data["title"],
        "author": data["author"],
        "summary": data["summary"],
        "isbn": data["isbn"],
        "genre": data["genre"],
    }
    # Güncellemede eski kimlik korunmalı, aksi halde yeni kimlik atanır
    if book_id is not None:
        values["id"] = book_id
    return Book(**values)


@app.post("/catalog/book/create", response_class=HTMLResponse)
async def book_create_post(request: Request):
    form = await _read_form(request)
    form["genre"] = ensure_list(form.get("genre"))
    result = validate_form(form, BOOK_RULES)
    book = _book_from_form(result.data)

    if not result.is_empty():
        return await _render_book_form_errors(request, "Create Book", book, result.errors)

    await catalog.save(book)
    return redirect(book.url)


@app.get("/catalog/book/{book_id}/update", response_class=HTMLResponse)
async def book_update_get(request: Request, book_id: str):
    results = await parallel({
        "book": catalog.find_by_id(Book, book_id, populate=("author", "genre")),
        "authors": catalog.find(Author, order_by="family_name"),
        "genres": catalog.find(Genre, order_by="name"),
    })
    book = results["book"]
    if book is None:
        raise NotFoundError("Book not found")

    _mark_checked(results["genres"], book.genre_ids)
    return render(request, "book_form.html", title="Update Book",
                  authors=results["authors"], genres=results["genres"], book=book, errors=None)


@app.post("/catalog/book/{book_id}/update", response_class=HTMLResponse)
async def book_update_post(request: Request, book_id: str):
    form = await _read_form(request)
    form["genre"] = ensure_list(form.get("genre"))
    result = validate_form(form, BOOK_RULES)
    book = _book_from_form(result.data, book_id=book_id)

    if not result.is_empty():
        return await _render_book_form_errors(request, "Update Book", book, result.errors)

    updated = await catalog.update(book_id, book)
    if updated is None:
        raise NotFoundError("Book not found")
    return redirect(updated.url)


@app.get("/catalog/book/{book_id}/delete", response_class=HTMLResponse)
async def book_delete_get(request: Request, book_id: str):
    results = await parallel({
        "book": catalog.find_by_id(Book, book_id, populate=("author",)),
        "book_instances": catalog.find(BookInstance, {"book": book_id}),
    })
    if results["book"] is None:
        return redirect("/catalog/books")
    return render(request, "book_delete.html", title="Delete Book",
                  book=results["book"], book_instances=results["book_instances"])


@app.post("/catalog/book/{book_id}/delete", response_class=HTMLResponse)
async def book_delete_post(request: Request, book_id: str):
    form = await _read_form(request)
    target_id = form.get("bookid") or book_id
    results = await parallel({
        "book": catalog.find_by_id(Book, target_id, populate=("author",)),
        "book_instances": catalog.find(BookInstance, {"book": target_id}),
    })
    if results["book_instances"]:
        # Kitabın kopyaları var; GET ile aynı şekilde göster
        return render(request, "book_delete.html", title="Delete Book",
                      book=results["book"], book_instances=results["book_instances"])

    await catalog.remove(Book, target_id)
    return redirect("/catalog/books")


@app.get("/catalog/book/{book_id}", response_class=HTMLResponse)
async def book_detail(request: Request, book_id: str):
    results = await parallel({
        "book": catalog.find_by_id(Book, book_id, populate=("author", "genre")),
        "book_instance": catalog.find(BookInstance, {"book": book_id}),
    })
    book = results["book"]
    if book is None:
        raise NotFoundError("Book not found")
    return render(request, "book_detail.html", title=book.title,
                  book=book, book_instances=results["book_instance"])


# ================================================================
# YAZARLAR
# ================================================================
@app.get("/catalog/authors", response_class=HTMLResponse)
async def author_list(request: Request):
    authors = await catalog.find(Author, order_by="family_name")
    return render(request, "author_list.html", title="Author List", author_list=authors)


@app.get("/catalog/author/create", response_class=HTMLResponse)
async def author_create_get(request: Request):
    return render(request, "author_form.html", title="Create Author", author=None, errors=None)


def _author_from_form(data: Dict[str, Any], author_id: Optional[str] = None) -> Author:
    values = {
        "first_name": data["first_name"],
        "family_name": data["family_name"],
        "date_of_birth": _parse_date(data["date_of_birth"]),
        "date_of_death": _parse_date(data["date_of_death"]),
    }
    if author_id is not None:
        values["id"] = author_id
    return Author(**values)


@app.post("/catalog/author/create", response_class=HTMLResponse)
async def author_create_post(request: Request):
    result = validate_form(await _read_form(request), AUTHOR_RULES)
    author = _author_from_form(result.data)

    if not result.is_empty():
        return render(request, "author_form.html", title="Create Author", author=author,
                      form=result.data, errors=result.errors)

    await catalog.save(author)
    return redirect(author.url)


@app.get("/catalog/author/{author_id}/update", response_class=HTMLResponse)
async def author_update_get(request: Request, author_id: str):
    author = await catalog.find_by_id(Author, author_id)
    if author is None:
        raise NotFoundError("Author not found")
    return render(request, "author_form.html", title="Update Author", author=author, errors=None)


@app.post("/catalog/author/{author_id}/update", response_class=HTMLResponse)
async def author_update_post(request: Request, author_id: str):
    result = validate_form(await _read_form(request), AUTHOR_RULES)
    author = _author_from_form(result.data, author_id=author_id)

    if not result.is_empty():
        return render(request, "author_form.html", title="Update Author", author=author,
                      form=result.data, errors=result.errors)

    updated = await catalog.update(author_id, author)
    if updated is None:
        raise NotFoundError("Author not found")
    return redirect(updated.url)


@app.get("/catalog/author/{author_id}/delete", response_class=HTMLResponse)
async def author_delete_get(request: Request, author_id: str):
    results = await parallel({
        "author": catalog.find_by_id(Author, author_id),
        "authors_books": catalog.find(Book, {"author": author_id}),
    })
    if results["author"] is None:
        return redirect("/catalog/authors")
    return render(request, "author_delete.html", title="Delete Author",
                  author=results["author"], author_books=results["authors_books"])


@app.post("/catalog/author/{author_id}/delete", response_class=HTMLResponse)
async def author_delete_post(request: Request, author_id: str):
    form = await _read_form(request)
    target_id = form.get("authorid") or author_id
    results = await parallel({
        "author": catalog.find_by_id(Author, target_id),
        "authors_books": catalog.find(Book, {"author": target_id}),
    })
    if results["authors_books"]:
        # Yazarın kitapları var; silme reddedilir
        return render(request, "author_delete.html", title="Delete Author",
                      author=results["author"], author_books=results["authors_books"])

    await catalog.remove(Author, target_id)
    return redirect("/catalog/authors")


@app.get("/catalog/author/{author_id}", response_class=HTMLResponse)
async def author_detail(request: Request, author_id: str):
    results = await parallel({
        "author": catalog.find_by_id(Author, author_id),
        "authors_books": catalog.find(Book, {"author": author_id}, fields=("title", "summary"), order_by="title"),
    })
    if results["author"] is None:
        raise NotFoundError("Author not found")
    return render(request, "author_detail.html", title="Author Detail",
                  author=results["author"], author_books=results["authors_books"])


# ================================================================
# TÜRLER
# ================================================================
@app.get("/catalog/genres", response_class=HTMLResponse)
async def genre_list(request: Request):
    genres = await catalog.find(Genre, order_by="name")
    return render(request, "genre_list.html", title="Genre List", genre_list=genres)


@app.get("/catalog/genre/create", response_class=HTMLResponse)
async def genre_create_get(request: Request):
    return render(request, "genre_form.html", title="Create Genre", genre=None, errors=None)


@app.post("/catalog/genre/create", response_class=HTMLResponse)
async def genre_create_post(request: Request):
    result = validate_form(await _read_form(request), GENRE_RULES)
    genre = Genre(name=result.data["name"])

    if not result.is_empty():
        return render(request, "genre_form.html", title="Create Genre", genre=genre, errors=result.errors)

    # Aynı adda bir tür varsa yenisini oluşturma, ona yönlendir
    existing = await catalog.find_one(Genre, {"name": genre.name})
    if existing is not None:
        return redirect(existing.url)

    await catalog.save(genre)
    return redirect(genre.url)


@app.get("/catalog/genre/{genre_id}/update", response_class=HTMLResponse)
async def genre_update_get(request: Request, genre_id: str):
    genre = await catalog.find_by_id(Genre, genre_id)
    if genre is None:
        raise NotFoundError("Genre not found")
    return render(request, "genre_form.html", title="Update Genre", genre=genre, errors=None)


@app.post("/catalog/genre/{genre_id}/update", response_class=HTMLResponse)
async def genre_update_post(request: Request, genre_id: str):
    result = validate_form(await _read_form(request), GENRE_RULES)
    genre = Genre(id=genre_id, name=result.data["name"])

    if not result.is_empty():
        return render(request, "genre_form.html", title="Update Genre", genre=genre, errors=result.errors)

    updated = await catalog.update(genre_id, genre)
    if updated is None:
        raise NotFoundError("Genre not found")
    return redirect(updated.url)


@app.get("/catalog/genre/{genre_id}/delete", response_class=HTMLResponse)
async def genre_delete_get(request: Request, genre_id: str):
    results = await parallel({
        "genre": catalog.find_by_id(Genre, genre_id),
        "genre_books": catalog.find(Book, {"genre": genre_id}),
    })
    if results["genre"] is None:
        return redirect("/catalog/genres")
    return render(request, "genre_delete.html", title="Delete Genre",
                  genre=results["genre"], genre_books=results["genre_books"])


@app.post("/catalog/genre/{genre_id}/delete", response_class=HTMLResponse)
async def genre_delete_post(request: Request, genre_id: str):
    form = await _read_form(request)
    target_id = form.get("genreid") or genre_id
    results = await parallel({
        "genre": catalog.find_by_id(Genre, target_id),
        "genre_books": catalog.find(Book, {"genre": target_id}),
    })
    if results["genre_books"]:
        return render(request, "genre_delete.html", title="Delete Genre",
                      genre=results["genre"], genre_books=results["genre_books"])

    await catalog.remove(Genre, target_id)
    return redirect("/catalog/genres")


@app.get("/catalog/genre/{genre_id}", response_class=HTMLResponse)
async def genre_detail(request: Request, genre_id: str):
    results = await parallel({
        "genre": catalog.find_by_id(Genre, genre_id),
        "genre_books": catalog.find(Book, {"genre": genre_id}, order_by="title"),
    })
    if results["genre"] is None:
        raise NotFoundError("Genre not found")
    return render(request, "genre_detail.html", title="Genre Detail",
                  genre=results["genre"], genre_books=results["genre_books"])


# ================================================================
# KİTAP KOPYALARI (salt okunur)
# ================================================================
@app.get("/catalog/bookinstances", response_class=HTMLResponse)
async def bookinstance_list(request: Request):
    instances = await catalog.find(BookInstance, populate=("book",))
    return render(request, "bookinstance_list.html", title="Book Instance List", bookinstance_list=instances)


@app.get("/catalog/bookinstance/{instance_id}", response_class=HTMLResponse)
async def bookinstance_detail(request: Request, instance_id: str):
    instance = await catalog.find_by_id(BookInstance, instance_id, populate=("book",))
    if instance is None:
        raise NotFoundError("Book copy not found")
    book_title = instance.book.title if isinstance(instance.book, Book) else instance.book_id
    return render(request, "bookinstance_detail.html", title=f"Copy: {book_title}", bookinstance=instance)


# ================================================================
# DOSYA YÜKLEME
# ================================================================
@app.get("/catalog/upload", response_class=HTMLResponse)
async def file_upload_get(request: Request):
    return render(request, "file_upload.html", title="Upload a File")


def _store_upload(upload: UploadFile, target: str) -> None:
    os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
    with open(target, "wb") as out:
        shutil.copyfileobj(upload.file, out)


@app.post("/catalog/upload")
async def file_upload_post(request: Request):
    """İlk dosyayı yükleme dizinine istemcinin verdiği adla taşı."""
    form = await request.form()
    files = [v for _, v in form.multi_items() if isinstance(v, UploadFile) and v.filename]
    if not files:
        return PlainTextResponse("No files were uploaded.", status_code=400)

    # Alan adı "sampleFile" tercih edilir; yoksa ilk dosya
    sample = form.get("sampleFile")
    upload = sample if isinstance(sample, UploadFile) and sample.filename else files[0]
    target = os.path.join(settings.upload_dir, upload.filename)
    try:
        await asyncio.to_thread(_store_upload, upload, target)
    except OSError as exc:
        logger.error(f"Yükleme başarısız ({target}): {exc}")
        return PlainTextResponse(str(exc), status_code=500)

    logger.info(f"Dosya yüklendi: {target}")
    return PlainTextResponse("File uploaded!")
