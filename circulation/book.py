from __future__ import annotations

AVAILABLE = "Available"
BORROWED = "Borrowed"
NO_BORROWER = "-None-"

STATUSES = (AVAILABLE, BORROWED)


class Book:
    """A single catalog entry together with its circulation state.

    ``borrow_date`` and ``due_date`` are day-numbers and only carry meaning
    while the book is borrowed; an available book always has both set to 0
    and ``borrowed_by`` set to ``NO_BORROWER``.
    """

    def __init__(self, title: str, author: str, isbn: str, publisher: str, year: int,
                 status: str = AVAILABLE, borrow_date: int = 0, due_date: int = 0,
                 borrowed_by: str = NO_BORROWER) -> None:
        self.title = title.strip()
        self.author = author.strip()
        self.isbn = isbn.strip()
        self.publisher = publisher.strip()
        self.year = year

        self.status = status
        self.borrow_date = borrow_date
        self.due_date = due_date
        self.borrowed_by = borrowed_by

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.year})"

    def __repr__(self) -> str:
        return f"Book(title={self.title!r}, status={self.status!r}, borrowed_by={self.borrowed_by!r})"

    def is_available(self) -> bool:
        return self.status == AVAILABLE

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "publisher": self.publisher,
            "year": self.year,
            "status": self.status,
            "borrow_date": self.borrow_date,
            "due_date": self.due_date,
            "borrowed_by": self.borrowed_by,
        }

    def to_record(self) -> list[str]:
        """Field list in the order used by the catalog file."""
        return [
            self.title, self.author, self.isbn, self.publisher, str(self.year),
            self.status, str(self.borrow_date), str(self.due_date), self.borrowed_by,
        ]

    @staticmethod
    def from_record(fields: list[str]) -> "Book":
        """Build a Book from a catalog file record.

        Raises ValueError when the record is short, a numeric field does not
        parse, the status is not one of ``STATUSES``, or the status disagrees
        with the holder and dates.
        """
        if len(fields) < 9:
            raise ValueError(f"expected 9 fields, got {len(fields)}")
        status = fields[5].strip()
        if status not in STATUSES:
            raise ValueError(f"unknown status {status!r}")
        book = Book(
            title=fields[0],
            author=fields[1],
            isbn=fields[2],
            publisher=fields[3],
            year=int(fields[4]),
            status=status,
            borrow_date=int(fields[6]),
            due_date=int(fields[7]),
            borrowed_by=fields[8].strip(),
        )
        if status == AVAILABLE and (book.borrowed_by != NO_BORROWER or book.borrow_date or book.due_date):
            raise ValueError("available book with a holder or loan dates")
        if status == BORROWED and book.borrowed_by == NO_BORROWER:
            raise ValueError("borrowed book without a holder")
        return book
