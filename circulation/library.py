from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from circulation import storage
from circulation.account import Account
from circulation.book import AVAILABLE, BORROWED, NO_BORROWER, Book
from circulation.config import Settings
from circulation.exceptions import (
    AlreadyBorrowedError,
    BorrowLimitError,
    NotBorrowedError,
    NotBorrowerError,
    OverdueBlockError,
)
from circulation.users import OVERDUE_BLOCK_DAYS, PaymentOutcome, User

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600


def current_day() -> int:
    """Day-number of the current wall-clock time (days since the Unix epoch)."""
    return int(time.time()) // SECONDS_PER_DAY


@dataclass(frozen=True)
class BorrowReceipt:
    title: str
    due_date: int
    due_in_days: int


@dataclass(frozen=True)
class ReturnReceipt:
    title: str
    overdue_days: int
    fine_charged: int = 0
    # Advisory only: the block itself is enforced on the next borrow
    borrowing_blocked: bool = False

    @property
    def on_time(self) -> bool:
        return self.overdue_days <= 0


class Library:
    """Manages the book catalog, the account registry and the borrow/return lifecycle."""

    def __init__(self, books_file: Union[str, Path], accounts_file: Union[str, Path],
                 autosave: bool = False) -> None:
        self.books_file = Path(books_file)
        self.accounts_file = Path(accounts_file)
        self.autosave = autosave
        # Set by any mutation, cleared by save()
        self.dirty = False

        self.books: List[Book] = storage.load_catalog(self.books_file)
        self.accounts: List[Account] = storage.load_accounts(self.accounts_file)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Library":
        return cls(settings.books_file, settings.accounts_file, autosave=settings.autosave)

    # ------------------------- Catalog ------------------------- #
    def list_books(self) -> List[Book]:
        return list(self.books)

    def find_book(self, title: str) -> Optional[Book]:
        """First book whose title matches exactly; titles are not unique."""
        title = title.strip()
        for book in self.books:
            if book.title == title:
                return book
        return None

    def add_book(self, title: str, author: str, isbn: str, publisher: str, year: int) -> Book:
        """Add a new available book. Raises ValueError for an empty title or a comma in any field."""
        if not title.strip():
            raise ValueError("Title cannot be empty.")
        for name, value in (("title", title), ("author", author), ("ISBN", isbn), ("publisher", publisher)):
            if "," in value:
                raise ValueError(f"The {name} cannot contain a comma.")
        book = Book(title, author, isbn, publisher, year)
        if self.find_book(book.title):
            logger.warning(f"Catalog already holds a book titled {book.title!r}; adding a duplicate")
        self.books.append(book)
        logger.info(f"Added book {book.title!r}")
        self._changed()
        return book

    def remove_book(self, title: str) -> int:
        """Remove every book with this title. Returns how many were removed."""
        title = title.strip()
        kept = [b for b in self.books if b.title != title]
        removed = len(self.books) - len(kept)
        if removed:
            self.books = kept
            logger.info(f"Removed {removed} book(s) titled {title!r}")
            self._changed()
        return removed

    # ------------------------- Accounts ------------------------- #
    def list_accounts(self) -> List[Account]:
        return list(self.accounts)

    def find_account(self, username: str) -> Optional[Account]:
        for account in self.accounts:
            if account.username == username:
                return account
        return None

    def login(self, username: str, password: str) -> Optional[Account]:
        account = self.find_account(username)
        if account is None or not account.check_password(password):
            logger.info(f"Failed login for {username!r}")
            return None
        return account

    # ------------------------- Holdings ------------------------- #
    def borrowed_by(self, user: User) -> List[Book]:
        """Books currently held by ``user``, recomputed from the catalog on every call."""
        return [b for b in self.books if b.borrowed_by == user.user_id and b.status == BORROWED]

    def overdue_books(self, user: User, today: Optional[int] = None) -> List[Tuple[Book, int]]:
        today = current_day() if today is None else today
        return [(b, today - b.due_date) for b in self.borrowed_by(user) if today - b.due_date > 0]

    # ------------------------- Circulation ------------------------- #
    def borrow_book(self, user: User, book: Book, today: Optional[int] = None) -> BorrowReceipt:
        """Lend ``book`` to ``user``.

        Raises a ``CirculationError`` subclass when the loan is refused; a
        refused loan leaves the book and the user untouched.
        """
        today = current_day() if today is None else today
        holdings = self.borrowed_by(user)

        if user.blocks_on_long_overdue:
            for held in holdings:
                if today - held.due_date > OVERDUE_BLOCK_DAYS:
                    logger.info(f"Borrow refused for {user.user_id}: {held.title!r} is long overdue")
                    raise OverdueBlockError(
                        f"Cannot borrow: {held.title!r} is overdue by more than "
                        f"{OVERDUE_BLOCK_DAYS} days."
                    )

        if not user.can_borrow_more(holdings):
            logger.info(f"Borrow refused for {user.user_id}: limit reached or unpaid fines")
            raise BorrowLimitError("Cannot borrow. You have reached the borrowing limit or have unpaid fines.")

        if book.status == BORROWED:
            raise AlreadyBorrowedError(f"{book.title!r} is already borrowed.")

        loan_days = user.loan_period_days()
        book.status = BORROWED
        book.borrowed_by = user.user_id
        book.borrow_date = today
        book.due_date = today + loan_days
        logger.info(f"{user.user_id} borrowed {book.title!r}, due on day {book.due_date}")
        self._changed()
        return BorrowReceipt(book.title, book.due_date, loan_days)

    def return_book(self, user: User, book: Book, today: Optional[int] = None) -> ReturnReceipt:
        """Take ``book`` back from ``user``, charging any overdue consequence."""
        if book.status == AVAILABLE:
            raise NotBorrowedError(f"{book.title!r} is not borrowed.")
        if book.borrowed_by != user.user_id:
            raise NotBorrowerError(f"{book.title!r} isn't borrowed by you.")

        today = current_day() if today is None else today
        overdue_days = today - book.due_date
        fine_charged = 0
        blocked = False
        if overdue_days > 0:
            fine_before = user.fine
            user.resolve_overdue(overdue_days)
            fine_charged = user.fine - fine_before
            blocked = user.blocks_on_long_overdue and overdue_days > OVERDUE_BLOCK_DAYS

        book.status = AVAILABLE
        book.borrowed_by = NO_BORROWER
        book.borrow_date = 0
        book.due_date = 0
        user.add_history(book.title)
        logger.info(f"{user.user_id} returned {book.title!r} ({overdue_days} days past due)")
        self._changed()
        return ReturnReceipt(book.title, overdue_days, fine_charged, blocked)

    def pay_fines(self, user: User, confirm: Callable[[int], bool]) -> PaymentOutcome:
        outcome = user.pay_fines(confirm)
        if outcome is PaymentOutcome.PAID:
            logger.info(f"{user.user_id} cleared their fines")
            self._changed()
        return outcome

    # ------------------------- Persistence ------------------------- #
    def save(self) -> None:
        storage.save_catalog(self.books_file, self.books)
        storage.save_accounts(self.accounts_file, self.accounts)
        self.dirty = False
        logger.info(f"Saved {len(self.books)} books and {len(self.accounts)} accounts")

    def _changed(self) -> None:
        self.dirty = True
        if self.autosave:
            self.save()

    def close(self) -> None:
        """Flush once at shutdown if anything changed since the last save."""
        if self.dirty:
            self.save()

