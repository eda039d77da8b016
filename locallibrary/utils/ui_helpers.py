import os
import json
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

# CLI çıktı modunu kontrol eden ortam değişkeni
# İzin verilen değerler: 'plain' (varsayılan), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

# Sayım anahtarları ve görünen etiketleri (ana sayfa ile aynı sıra)
STAT_LABELS = (
    ("book_count", "Books"),
    ("book_instance_count", "Copies"),
    ("book_instance_available_count", "Copies available"),
    ("author_count", "Authors"),
    ("genre_count", "Genres"),
)


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_stats_result(stats: Dict[str, Any]) -> None:
    """Katalog sayımlarını mevcut çıktı moduna göre yazdır.
    - plain: her sayım için 'Etiket: değer' satırı
    - json: JSON nesnesi
    - rich: Rich tablosu
    """
    mode = get_output_mode()

    if not stats:
        print("No statistics available.")
        return

    if mode == "json":
        print(json.dumps({key: stats.get(key, 0) for key, _ in STAT_LABELS}, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📊 Catalog", header_style="bold cyan")
        table.add_column("Record", style="white")
        table.add_column("Count", style="magenta", justify="right")
        for key, label in STAT_LABELS:
            table.add_row(label, str(stats.get(key, 0)))
        _console.print(table)
    else:
        for key, label in STAT_LABELS:
            print(f"{label}: {stats.get(key, 0)}")
