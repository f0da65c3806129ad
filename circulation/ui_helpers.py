import os
import json
from typing import List, Sequence
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from circulation.book import Book, BORROWED

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIBRARY_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def book_table(books: Sequence[Book], title: str = "📚 Catalog") -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Year", justify="right")
    table.add_column("Status")
    table.add_column("Borrowed by", style="magenta")
    table.add_column("Due day", justify="right")
    for b in books:
        borrowed = b.status == BORROWED
        table.add_row(
            b.title,
            b.author,
            str(b.year),
            f"[yellow]{b.status}[/]" if borrowed else f"[green]{b.status}[/]",
            b.borrowed_by,
            str(b.due_date) if borrowed else "",
        )
    return table


def print_list_result(books: List[Book]) -> None:
    """Print the catalog in the current output mode.
    - plain: one 'Title=..., Auth=..., Year=..., Status=..., BorrowedBy=...' line per book
    - json: array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        _console.print(book_table(books))
    else:
        for b in books:
            line = f"Title={b.title}, Auth={b.author}, Year={b.year}, Status={b.status}, BorrowedBy={b.borrowed_by}"
            if b.status == BORROWED:
                line += f", dueDay={b.due_date}"
            print(line)


def print_history_result(titles: Sequence[str]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(list(titles), ensure_ascii=False))
        return

    if not titles:
        print("No returned-book history.")
        return

    if mode == "rich":
        content = "\n".join(f"• {t}" for t in titles)
        _console.print(Panel.fit(content, title="📖 Returned Books", border_style="blue"))
    else:
        print("Returned Books:")
        for t in titles:
            print(f" - {t}")
