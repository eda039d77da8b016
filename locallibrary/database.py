import os
import sqlite3
import logging
from typing import Optional

from dotenv import load_dotenv

from locallibrary.config import settings

# .env'den ortam değişkenlerinin okunmadan önce yüklendiğinden emin olun.
load_dotenv()

logger = logging.getLogger(__name__)

# Varsayılan veritabanı dosyası.
# Öncelik:
# 1) LIBRARY_DB_FILE (açık geçersiz kılma)
# 2) config.py içindeki settings.database_file
DATABASE_FILE = os.environ.get("LIBRARY_DB_FILE") or settings.database_file


def get_db_connection(db_file: Optional[str] = None) -> sqlite3.Connection:
    """SQLite veritabanına yeni bir bağlantı kurar.

    Bağlantılar iş parçacıkları arasında taşınabilir olmalı; katalog işlemleri
    asyncio.to_thread içinde çalışır.
    """
    conn = sqlite3.connect(db_file or DATABASE_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: Optional[str] = None) -> None:
    """Veritabanında mevcut değilse koleksiyon tablolarını oluşturur.

    Referanslar yabancı anahtar değildir: silme koruması veritabanında değil,
    işleyicilerde uygulanır.
    """
    conn = get_db_connection(db_file)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS authors (
                id TEXT PRIMARY KEY,
                first_name TEXT NOT NULL,
                family_name TEXT NOT NULL,
                date_of_birth TEXT,
                date_of_death TEXT
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS genres (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL
            )
        """)
        # genre sütunu, tür kimliklerinin JSON dizisidir
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                summary TEXT NOT NULL,
                isbn TEXT NOT NULL,
                genre TEXT NOT NULL DEFAULT '[]'
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bookinstances (
                id TEXT PRIMARY KEY,
                book TEXT NOT NULL,
                imprint TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'Maintenance',
                due_back TEXT
            )
        """)

        # Sık kullanılan sorgular için dizinler
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_author ON books(author)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_authors_family_name ON authors(family_name)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_genres_name ON genres(name)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_bookinstances_book ON bookinstances(book)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_bookinstances_status ON bookinstances(status)")
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: Optional[str] = None) -> None:
    """Veritabanını başlatır, gerekirse tabloları oluşturur."""
    create_tables(db_file)
    logger.debug(f"Veritabanı hazır: {db_file or DATABASE_FILE}")
