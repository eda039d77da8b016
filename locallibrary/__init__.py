"""Local Library - Core Application Package

This package contains the core application modules including:
- Web catalog handlers (api.py)
- Document store over SQLite (catalog.py)
- CLI interface (main.py)
- Data models (author.py, genre.py, book.py, bookinstance.py)
- Database layer (database.py)
"""
