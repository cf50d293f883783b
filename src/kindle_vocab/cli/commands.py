"""CLI commands for kindle-vocab.

Commands:
- books: List books (one per asin)
- lookups: List lookups, optionally for one book
- delete-book: Delete a book with its words and lookups
- delete-lookup: Delete a single lookup
- clear: Delete every row of words, lookups or books
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer
from rich.console import Console
from rich.table import Table

from kindle_vocab.config.app_config import load_app_config
from kindle_vocab.db.vocab_store import (
    CascadeDeleteError,
    VocabStore,
    VocabStoreError,
)

app = typer.Typer(
    name="kvocab",
    help="Browse and clean up the Kindle vocabulary database (vocab.db).",
    no_args_is_help=True,
)

console = Console()


class ClearTarget(str, Enum):
    """Tables that `clear` can empty."""

    words = "words"
    lookups = "lookups"
    books = "books"


@app.callback()
def main(
    ctx: typer.Context,
    db: Path | None = typer.Option(
        None, "--db", help="Path to vocab.db (default: from config)"
    ),
) -> None:
    """Kindle vocabulary database tools."""
    ctx.obj = db


def _db_path(ctx: typer.Context) -> Path:
    return ctx.obj or load_app_config().db_path


def _run_with_store(
    db_path: Path, action: Callable[[VocabStore], Awaitable[Any]]
) -> Any:
    """Open the store, run one action, close it. Exit 1 on store errors."""

    async def _run() -> Any:
        async with VocabStore(db_path) as store:
            return await action(store)

    try:
        return asyncio.run(_run())
    except CascadeDeleteError as e:
        console.print(f"[red]✗ {e}[/red]")
        if e.completed_steps:
            console.print(f"  [dim]pasos completados:[/dim] {', '.join(e.completed_steps)}")
        raise typer.Exit(code=1)
    except VocabStoreError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _confirm_or_exit(message: str, yes: bool) -> None:
    if yes or not load_app_config().confirm_deletes:
        return
    if not typer.confirm(message):
        console.print("[yellow]Cancelado[/yellow]")
        raise typer.Exit(code=0)


def _format_timestamp(timestamp: int) -> str:
    """Format a Kindle timestamp (epoch milliseconds) as UTC."""
    moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M")


def _truncate(text: str, max_len: int = 60) -> str:
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


@app.command()
def books(ctx: typer.Context) -> None:
    """List books in vocab.db (one per asin)."""
    result = _run_with_store(_db_path(ctx), lambda store: store.list_all_books())

    if not result:
        console.print("[yellow]No hay libros en la base de datos[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Título")
    table.add_column("Autores")
    table.add_column("Idioma", justify="center")

    for book in result:
        table.add_row(book.id, book.title, book.authors, book.lang)

    console.print(table)
    console.print(f"[dim]{len(result)} libro(s)[/dim]")


@app.command()
def lookups(
    ctx: typer.Context,
    book: str | None = typer.Option(
        None, "--book", "-b", help="Only lookups of this book id"
    ),
    no_title: bool = typer.Option(
        False, "--no-title", help="Skip the book join (keeps lookups without book)"
    ),
) -> None:
    """List word lookups ordered by time."""
    if book is not None:
        result = _run_with_store(
            _db_path(ctx), lambda store: store.list_lookups_for_book(book)
        )
    else:
        result = _run_with_store(
            _db_path(ctx),
            lambda store: store.list_all_lookups(with_book_title=not no_title),
        )

    if not result:
        console.print("[yellow]No hay búsquedas[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Fecha", style="dim", no_wrap=True)
    table.add_column("Palabra", style="cyan", no_wrap=True)
    table.add_column("Raíz", no_wrap=True)
    table.add_column("Contexto")
    if not no_title or book is not None:
        table.add_column("Libro")

    for lookup in result:
        row = [
            _format_timestamp(lookup.timestamp),
            lookup.word,
            lookup.stem,
            _truncate(lookup.usage),
        ]
        if not no_title or book is not None:
            row.append(lookup.book_title or "")
        table.add_row(*row)

    console.print(table)
    console.print(f"[dim]{len(result)} búsqueda(s)[/dim]")


@app.command(name="delete-book")
def delete_book(
    ctx: typer.Context,
    book_id: str = typer.Argument(..., help="BOOK_INFO id (see 'kvocab books')"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete a book together with its words and lookups.

    Words go first, then lookups, then the book row. The steps are not
    atomic: if one fails, the previous ones stay applied.
    """
    _confirm_or_exit(
        f"¿Eliminar el libro '{book_id}' con sus palabras y búsquedas?", yes
    )

    deleted = _run_with_store(
        _db_path(ctx), lambda store: store.delete_book_cascade(book_id)
    )

    if deleted["book"] == 0:
        console.print(f"[yellow]⚠ Libro no encontrado: {book_id}[/yellow]")
    else:
        console.print(f"[green]✓ Libro eliminado: {book_id}[/green]")
    console.print(f"  [dim]palabras:[/dim]  {deleted['words']}")
    console.print(f"  [dim]búsquedas:[/dim] {deleted['lookups']}")


@app.command(name="delete-lookup")
def delete_lookup(
    ctx: typer.Context,
    lookup_id: str = typer.Argument(..., help="LOOKUPS id"),
) -> None:
    """Delete a single lookup."""
    deleted = _run_with_store(
        _db_path(ctx), lambda store: store.delete_lookup_by_id(lookup_id)
    )

    if deleted:
        console.print(f"[green]✓ Búsqueda eliminada: {lookup_id}[/green]")
    else:
        console.print(f"[yellow]⚠ Búsqueda no encontrada: {lookup_id}[/yellow]")


@app.command()
def clear(
    ctx: typer.Context,
    target: ClearTarget = typer.Argument(..., help="words, lookups or books"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete every row of one table (DESTRUCTIVE)."""
    operations = {
        ClearTarget.words: lambda store: store.delete_all_words(),
        ClearTarget.lookups: lambda store: store.delete_all_lookups(),
        ClearTarget.books: lambda store: store.delete_all_books(),
    }

    console.print(
        f"\n[bold red]⚠️  Se eliminarán TODAS las filas de '{target.value}'[/bold red]"
    )
    _confirm_or_exit("¿Continuar?", yes)

    deleted = _run_with_store(_db_path(ctx), operations[target])
    console.print(f"[green]✓ {deleted} fila(s) eliminada(s) de {target.value}[/green]")


if __name__ == "__main__":
    app()
