import sys
import asyncio
import subprocess
import webbrowser
from typing import Optional

import typer
from rich.console import Console

from locallibrary.catalog import Catalog
from locallibrary.config import settings
from locallibrary.errors import CatalogError
from locallibrary.services.stats import collect_stats
from locallibrary.utils.ui_helpers import print_stats_result, set_output_mode

APP_NAME = "Local Library CLI"

console = Console()

app = typer.Typer(help=APP_NAME)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """CLI için genel seçenekler (ör. çıktı modu)."""
    if output:
        set_output_mode(output)


@app.command("init-db")
def cli_init_db(db_file: Optional[str] = typer.Option(None, "--db-file", help="SQLite database file")):
    """Veritabanı tablolarını oluştur."""
    catalog = Catalog(db_file=db_file)
    print(f"Database initialized: {catalog.db_file}")


@app.command("stats")
def cli_stats(db_file: Optional[str] = typer.Option(None, "--db-file", help="SQLite database file")):
    """Katalog kayıt sayılarını göster."""
    catalog = Catalog(db_file=db_file)
    try:
        stats = asyncio.run(collect_stats(catalog))
    except CatalogError as e:
        print(f"Error: {e.message}")
        raise typer.Exit(code=1)
    print_stats_result(stats)


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
    browser: bool = typer.Option(True, "--browser/--no-browser", help="Open the catalog in a browser"),
):
    """Uvicorn kullanarak web arayüzünü başlat."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/catalog"
    print(f"Starting web UI on {url}")
    if browser:
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            console.print("[yellow]Could not open a web browser automatically.[/]")

    args = [
        sys.executable,
        "-m", "uvicorn",
        "locallibrary.api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args)
    except FileNotFoundError:
        console.print("[bold red]Error:[/] `uvicorn` could not be started. Make sure it is installed.")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
