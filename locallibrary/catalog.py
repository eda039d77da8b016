import os
import asyncio
import logging
import sqlite3
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

import locallibrary.database as database
from locallibrary.database import get_db_connection, initialize_database
from locallibrary.author import Author
from locallibrary.book import Book
from locallibrary.bookinstance import BookInstance
from locallibrary.errors import StorageError
from locallibrary.genre import Genre

logger = logging.getLogger(__name__)

# (model, alan) -> referans verilen model
REFERENCES: Dict[tuple, Type] = {
    (Book, "author"): Author,
    (Book, "genre"): Genre,
    (BookInstance, "book"): Book,
}

# JSON dizisi olarak saklanan çok değerli referans alanları
ARRAY_FIELDS = {(Book, "genre")}


class Catalog:
    """Dört koleksiyon için belge deposu: bul, say, kaydet, güncelle, sil.

    Her işlem beklenebilir; SQLite çalışması olay döngüsünü engellememek için
    bir iş parçacığında, çağrı başına kısa ömürlü bir bağlantıyla yürütülür.
    sqlite3 hataları StorageError olarak yayılır.
    """

    def __init__(self, db_file: Optional[str] = None) -> None:
        # Açık argüman > LIBRARY_DB_FILE ortam değişkeni > modül varsayılanı
        self.db_file = db_file or os.environ.get("LIBRARY_DB_FILE") or database.DATABASE_FILE
        initialize_database(self.db_file)

    # ------------------------- Çekirdek işlemler ------------------------- #
    async def find(self, model: Type, filters: Optional[Dict[str, Any]] = None, *,
                   fields: Optional[Sequence[str]] = None, order_by: Optional[str] = None,
                   populate: Sequence[str] = ()) -> List[Any]:
        """Filtreye uyan tüm belgeleri döndür (filtre yoksa hepsini).

        `fields` bir projeksiyondur (kimlik her zaman dahil); `populate` içindeki
        referans alanları aynı bağlantıda belge nesnelerine genişletilir.
        """
        return await self._run(self._find, model, filters or {}, fields, order_by, populate)

    async def find_by_id(self, model: Type, doc_id: str, *, populate: Sequence[str] = ()) -> Optional[Any]:
        """Kimliğe göre tek bir belge bul; yoksa None."""
        docs = await self._run(self._find, model, {"id": doc_id}, None, None, populate)
        return docs[0] if docs else None

    async def find_one(self, model: Type, filters: Dict[str, Any]) -> Optional[Any]:
        docs = await self._run(self._find, model, filters, None, None, ())
        return docs[0] if docs else None

    async def count(self, model: Type, filters: Optional[Dict[str, Any]] = None) -> int:
        return await self._run(self._count, model, filters or {})

    async def save(self, doc: Any) -> Any:
        """Yeni bir belge ekle."""
        await self._run(self._insert, doc)
        logger.info(f"{doc.collection} belgesi kaydedildi: {doc.id}")
        return doc

    async def update(self, doc_id: str, doc: Any) -> Optional[Any]:
        """Kimliğe göre belgeyi yeni değerlerle değiştir.

        Kimlik korunur: `doc` üzerindeki kimlik ne olursa olsun kayıt `doc_id`
        altında kalır. Belge yoksa None döner.
        """
        doc.id = doc_id
        changed = await self._run(self._replace, doc)
        if not changed:
            return None
        logger.info(f"{doc.collection} belgesi güncellendi: {doc_id}")
        return doc

    async def remove(self, model: Type, doc_id: str) -> bool:
        removed = await self._run(self._delete, model, doc_id)
        if removed:
            logger.info(f"{model.collection} belgesi silindi: {doc_id}")
        return removed

    # ------------------------- SQL yardımcıları ------------------------- #
    async def _run(self, func: Callable, *args: Any) -> Any:
        return await asyncio.to_thread(self._execute, func, *args)

    def _execute(self, func: Callable, *args: Any) -> Any:
        conn = get_db_connection(self.db_file)
        try:
            return func(conn, *args)
        except sqlite3.Error as exc:
            logger.error(f"Veritabanı işlemi başarısız: {exc}")
            raise StorageError(f"Database operation failed: {exc}") from exc
        finally:
            conn.close()

    @staticmethod
    def _check_column(model: Type, column: str) -> str:
        if column not in model.columns:
            raise ValueError(f"{model.collection} koleksiyonunda '{column}' alanı yok.")
        return column

    @classmethod
    def _where(cls, model: Type, filters: Dict[str, Any]) -> tuple:
        clauses = []
        params: List[Any] = []
        for column, value in filters.items():
            cls._check_column(model, column)
            if isinstance(value, Enum):
                value = value.value
            if (model, column) in ARRAY_FIELDS:
                # Dizi üyeliği: {"genre": id} kimliği içeren belgeleri eşleştirir
                clauses.append(f"EXISTS (SELECT 1 FROM json_each({model.collection}.{column}) WHERE value = ?)")
            else:
                clauses.append(f"{column} = ?")
            params.append(value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _find(self, conn: sqlite3.Connection, model: Type, filters: Dict[str, Any],
              fields: Optional[Sequence[str]], order_by: Optional[str],
              populate: Sequence[str]) -> List[Any]:
        if fields:
            columns = ["id"] + [self._check_column(model, f) for f in fields if f != "id"]
        else:
            columns = list(model.columns)
        where, params = self._where(model, filters)
        sql = f"SELECT {', '.join(columns)} FROM {model.collection}{where}"
        if order_by:
            sql += f" ORDER BY {self._check_column(model, order_by)}"
        rows = conn.execute(sql, params).fetchall()
        docs = [model.from_dict(dict(row)) for row in rows]
        if docs and populate:
            self._populate(conn, docs, populate)
        return docs

    def _count(self, conn: sqlite3.Connection, model: Type, filters: Dict[str, Any]) -> int:
        where, params = self._where(model, filters)
        return conn.execute(f"SELECT COUNT(*) FROM {model.collection}{where}", params).fetchone()[0]

    def _insert(self, conn: sqlite3.Connection, doc: Any) -> None:
        row = doc.to_dict()
        placeholders = ", ".join("?" for _ in row)
        conn.execute(
            f"INSERT INTO {doc.collection} ({', '.join(row)}) VALUES ({placeholders})",
            list(row.values()),
        )
        conn.commit()

    def _replace(self, conn: sqlite3.Connection, doc: Any) -> bool:
        row = doc.to_dict()
        doc_id = row.pop("id")
        set_clause = ", ".join(f"{column} = ?" for column in row)
        cursor = conn.execute(
            f"UPDATE {doc.collection} SET {set_clause} WHERE id = ?",
            list(row.values()) + [doc_id],
        )
        conn.commit()
        return cursor.rowcount > 0

    def _delete(self, conn: sqlite3.Connection, model: Type, doc_id: str) -> bool:
        cursor = conn.execute(f"DELETE FROM {model.collection} WHERE id = ?", (doc_id,))
        conn.commit()
        return cursor.rowcount > 0

    def _populate(self, conn: sqlite3.Connection, docs: List[Any], paths: Sequence[str]) -> None:
        for path in paths:
            # Aynı koleksiyondaki belgeler aynı modeli paylaşır
            owner = type(docs[0])
            target = REFERENCES.get((owner, path))
            if target is None:
                raise ValueError(f"{owner.collection}.{path} bir referans alanı değil.")
            is_array = (owner, path) in ARRAY_FIELDS

            wanted = set()
            for doc in docs:
                value = getattr(doc, path)
                for ref in (value if is_array else [value]):
                    if isinstance(ref, str):
                        wanted.add(ref)
            if not wanted:
                continue

            placeholders = ", ".join("?" for _ in wanted)
            rows = conn.execute(
                f"SELECT {', '.join(target.columns)} FROM {target.collection} WHERE id IN ({placeholders})",
                list(wanted),
            ).fetchall()
            found = {row["id"]: target.from_dict(dict(row)) for row in rows}

            for doc in docs:
                value = getattr(doc, path)
                if is_array:
                    expanded = []
                    for ref in value:
                        if isinstance(ref, str):
                            if ref in found:
                                expanded.append(found[ref])
                        else:
                            expanded.append(ref)
                    setattr(doc, path, expanded)
                elif isinstance(value, str) and value in found:
                    setattr(doc, path, found[value])
