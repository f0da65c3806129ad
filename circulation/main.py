import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from circulation.account import Account
from circulation.book import Book
from circulation.config import settings
from circulation.exceptions import CirculationError
from circulation.library import BorrowReceipt, Library, ReturnReceipt, current_day
from circulation.ui_helpers import book_table, print_history_result, print_list_result, set_output_mode
from circulation.users import PaymentOutcome, User

console = Console()


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@contextmanager
def open_library(save: bool = True) -> Iterator[Library]:
    """Load the library for one command and save it on the way out if anything changed."""
    lib = Library.from_settings(settings)
    try:
        yield lib
    finally:
        if save:
            lib.close()


# --- Message formatting shared by the menu and the commands ---
def borrow_message(receipt: BorrowReceipt) -> str:
    return f"Successfully borrowed: {receipt.title}. Due in {receipt.due_in_days} days."


def return_messages(receipt: ReturnReceipt) -> list[str]:
    lines = []
    if receipt.on_time:
        lines.append("Returned on time.")
    else:
        if receipt.fine_charged:
            lines.append(f"You were fined {receipt.fine_charged} for {receipt.overdue_days} overdue day(s).")
        else:
            lines.append(f"Returned {receipt.overdue_days} day(s) late.")
        if receipt.borrowing_blocked:
            lines.append("Faculty cannot borrow new books until this overdue book is cleared.")
    lines.append("Book returned successfully.")
    return lines


PAYMENT_MESSAGES = {
    PaymentOutcome.PAID: "Fines cleared.",
    PaymentOutcome.DECLINED: "Cancelled.",
    PaymentOutcome.NOTHING_DUE: "No fines to pay.",
    PaymentOutcome.NOT_APPLICABLE: "Fines do not apply to your account.",
}


# --- Typer CLI application ---
app = typer.Typer(help="Library circulation CLI")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global options for the CLI (e.g. output mode)."""
    configure_logging()
    if output:
        set_output_mode(output)


def _login(lib: Library, username: str, password: str, role: Optional[str] = None) -> Account:
    account = lib.login(username, password)
    if account is None:
        print("Invalid login.")
        raise typer.Exit(code=1)
    if role and account.role != role:
        print(f"This operation requires a {role} account.")
        raise typer.Exit(code=1)
    return account


def _resolve_title(lib: Library, title: str) -> Book:
    book = lib.find_book(title)
    if book is None:
        print(f"No book found with title {title}.")
        raise typer.Exit(code=1)
    return book


PASSWORD_OPTION = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, help="Account password")


@app.command("list")
def cli_list():
    """List every book in the catalog."""
    with open_library(save=False) as lib:
        print_list_result(lib.list_books())


@app.command("add")
def cli_add(
    username: str,
    title: str = typer.Option(..., "--title", "-t"),
    author: str = typer.Option(..., "--author", "-a"),
    isbn: str = typer.Option("", "--isbn"),
    publisher: str = typer.Option("", "--publisher"),
    year: int = typer.Option(0, "--year", "-y"),
    password: str = PASSWORD_OPTION,
):
    """Add a book to the catalog (librarians only)."""
    with open_library() as lib:
        _login(lib, username, password, role="librarian")
        try:
            book = lib.add_book(title, author, isbn, publisher, year)
        except ValueError as e:
            print(f"Error: {e}")
            raise typer.Exit(code=1)
        print(f"Book added: {book.title}")


@app.command("remove")
def cli_remove(username: str, title: str, password: str = PASSWORD_OPTION):
    """Remove every book with the given title (librarians only)."""
    with open_library() as lib:
        _login(lib, username, password, role="librarian")
        if lib.remove_book(title):
            print("Removed.")
        else:
            print("No book with that title.")


@app.command("borrow")
def cli_borrow(username: str, title: str, password: str = PASSWORD_OPTION):
    """Borrow a book by title."""
    with open_library() as lib:
        account = _login(lib, username, password)
        book = _resolve_title(lib, title)
        try:
            print(borrow_message(lib.borrow_book(account.user, book)))
        except CirculationError as e:
            print(e)


@app.command("return")
def cli_return(username: str, title: str, password: str = PASSWORD_OPTION):
    """Return a borrowed book by title."""
    with open_library() as lib:
        account = _login(lib, username, password)
        book = _resolve_title(lib, title)
        try:
            receipt = lib.return_book(account.user, book)
        except CirculationError as e:
            print(e)
            return
        for line in return_messages(receipt):
            print(line)


@app.command("pay-fines")
def cli_pay_fines(
    username: str,
    password: str = PASSWORD_OPTION,
    yes: bool = typer.Option(False, "--yes", help="Pay without asking for confirmation"),
):
    """Pay the outstanding fine balance (students only)."""
    with open_library() as lib:
        account = _login(lib, username, password)

        def confirm(amount: int) -> bool:
            return yes or typer.confirm(f"Your total fine is {amount}. Pay now?")

        outcome = lib.pay_fines(account.user, confirm)
        print(PAYMENT_MESSAGES[outcome])


@app.command("history")
def cli_history(username: str, password: str = PASSWORD_OPTION):
    """Show the titles you have returned."""
    with open_library(save=False) as lib:
        account = _login(lib, username, password)
        print_history_result(account.user.history)


@app.command("loans")
def cli_loans(username: str, password: str = PASSWORD_OPTION):
    """Show the books you currently hold and any that are overdue."""
    with open_library(save=False) as lib:
        account = _login(lib, username, password)
        user = account.user
        holdings = lib.borrowed_by(user)
        if not holdings:
            print("You have no books on loan.")
            return
        today = current_day()
        for book in holdings:
            print(f"{book.title} - due on day {book.due_date}")
        for book, days in lib.overdue_books(user, today):
            print(f"Overdue: {book.title} by {days} day(s)")
        print(f"Current fine: {user.fine}")


@app.command("menu")
def cli_menu():
    """Start the interactive menu."""
    run_menu()


# --- Interactive shell ---
def _wait() -> None:
    Prompt.ask("[dim]Press Enter to continue[/]", default="", show_default=False)


def _render_menu(title: str, items: list[tuple[str, str, str]]) -> None:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label, icon in items:
        table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")
    console.print(Panel(table, title=title, border_style="cyan", box=box.HEAVY, padding=(1, 2)))


def list_all_books(lib: Library) -> None:
    books = lib.list_books()
    if not books:
        console.print("[yellow]No books.[/]")
        return
    console.print(book_table(books))
    console.print(f"[dim]📊 {len(books)} book(s)[/]")


def add_book(lib: Library) -> None:
    title = Prompt.ask("Title").strip()
    author = Prompt.ask("Author")
    isbn = Prompt.ask("ISBN", default="")
    publisher = Prompt.ask("Publisher", default="")
    year = IntPrompt.ask("Year", default=0)
    try:
        book = lib.add_book(title, author, isbn, publisher, year)
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        return
    console.print(f"[green]✅ Book added:[/] [bold]{escape(book.title)}[/]")


def remove_book(lib: Library) -> None:
    title = Prompt.ask("🔍 Enter title to remove").strip()
    matches = [b for b in lib.list_books() if b.title == title]
    if not matches:
        console.print(f"[yellow]⚠️ No book with title [bold]{escape(title)}[/].[/]")
        return
    if Confirm.ask(f"🗑️ Remove {len(matches)} book(s) titled '{escape(title)}'?", default=False):
        lib.remove_book(title)
        console.print("[green]✅ Removed.[/]")
    else:
        console.print("[blue]🚫 Removal cancelled.[/]")


def borrow(lib: Library, user: User) -> None:
    title = Prompt.ask("Enter book title to borrow").strip()
    book = lib.find_book(title)
    if book is None:
        console.print("[yellow]No book found.[/]")
        return
    try:
        receipt = lib.borrow_book(user, book)
    except CirculationError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        return
    console.print(f"[green]{escape(borrow_message(receipt))}[/]")


def give_back(lib: Library, user: User) -> None:
    title = Prompt.ask("Enter book title to return").strip()
    book = lib.find_book(title)
    if book is None:
        console.print("[yellow]No such book.[/]")
        return
    try:
        receipt = lib.return_book(user, book)
    except CirculationError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        return
    style = "green" if receipt.on_time else "yellow"
    for line in return_messages(receipt):
        console.print(f"[{style}]{escape(line)}[/]")


def pay_fines(lib: Library, user: User) -> None:
    outcome = lib.pay_fines(
        user, lambda amount: Confirm.ask(f"Your total fine is [bold]{amount}[/]. Pay now?", default=False)
    )
    console.print(PAYMENT_MESSAGES[outcome])


def show_history(user: User) -> None:
    if not user.history:
        console.print("[yellow]No returned-book history.[/]")
        return
    console.print(Panel.fit("\n".join(f"• {escape(t)}" for t in user.history),
                            title="📖 Returned Books", border_style="blue"))


def librarian_menu(lib: Library, account: Account) -> None:
    user = account.user
    items = [
        ("1", "List all books", "📚"),
        ("2", "Add book", "➕"),
        ("3", "Remove book", "🗑️"),
        ("0", "Logout", "🚪"),
    ]
    while True:
        console.clear()
        _render_menu(f"Hello Librarian {user.name} [{user.user_id}]", items)
        choice = Prompt.ask("Choice", choices=[k for k, _, _ in items], default="1")
        if choice == "0":
            return
        if choice == "1":
            list_all_books(lib)
        elif choice == "2":
            add_book(lib)
        elif choice == "3":
            remove_book(lib)
        _wait()


def patron_menu(lib: Library, account: Account) -> None:
    user = account.user
    items = [
        ("1", "List all books", "📚"),
        ("2", "Borrow a book", "📥"),
        ("3", "Return a book", "📤"),
    ]
    if user.pays_fines:
        items.append(("4", "Pay fines", "💰"))
    items += [
        ("5", "Show returned-book history", "📖"),
        ("0", "Logout", "🚪"),
    ]
    while True:
        console.clear()
        holdings = lib.borrowed_by(user)
        _render_menu(
            f"Hello {user.name} [{user.user_id}], role={account.role} · "
            f"fine: {user.fine} · on loan: {len(holdings)}",
            items,
        )
        choice = Prompt.ask("Choice", choices=[k for k, _, _ in items], default="1")
        if choice == "0":
            return
        if choice == "1":
            list_all_books(lib)
        elif choice == "2":
            borrow(lib, user)
        elif choice == "3":
            give_back(lib, user)
        elif choice == "4":
            pay_fines(lib, user)
        elif choice == "5":
            show_history(user)
        _wait()


def run_menu() -> None:
    """Interactive menu: log in, work through the role menu, save on exit."""
    configure_logging()
    with open_library() as lib:
        while True:
            console.clear()
            _render_menu(settings.app_name, [("1", "Login", "🔑"), ("0", "Exit", "🚪")])
            choice = Prompt.ask("Choice", choices=["1", "0"], default="1")
            if choice == "0":
                console.print("[green]Goodbye![/]")
                break

            username = Prompt.ask("Username").strip()
            password = Prompt.ask("Password", password=True)
            account = lib.login(username, password)
            if account is None:
                console.print("[bold red]Invalid login.[/]")
                _wait()
                continue

            if account.role == "librarian":
                librarian_menu(lib, account)
            else:
                patron_menu(lib, account)


def main() -> None:
    if len(sys.argv) > 1:
        app()
    else:
        run_menu()


if __name__ == "__main__":
    main()
