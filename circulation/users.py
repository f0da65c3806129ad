"""Role policies for library users.

Every account owns exactly one user, and the user's class decides how many
books may be held at once, how long a loan lasts and what happens when a
book comes back late. The circulation engine only talks to the interface
defined on ``User``; it never tests for a concrete class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, Sequence, Type

from circulation.book import Book
from circulation.exceptions import UnknownRoleError


# Days past due after which a faculty loan blocks further borrowing
OVERDUE_BLOCK_DAYS = 60


class PaymentOutcome(Enum):
    PAID = "paid"
    DECLINED = "declined"
    NOTHING_DUE = "nothing_due"
    NOT_APPLICABLE = "not_applicable"


class User(ABC):
    role: str = ""
    # Faculty cannot borrow while holding a book more than 60 days overdue
    blocks_on_long_overdue: bool = False
    pays_fines: bool = False

    def __init__(self, name: str, user_id: str, fine: int = 0) -> None:
        self.name = name
        self.user_id = user_id
        self.fine = fine
        self._history: list[str] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, user_id={self.user_id!r}, fine={self.fine})"

    @property
    def history(self) -> tuple[str, ...]:
        """Titles of returned books, oldest first."""
        return tuple(self._history)

    def add_history(self, title: str) -> None:
        self._history.append(title)

    def has_unpaid_fines(self) -> bool:
        return self.fine > 0

    @abstractmethod
    def can_borrow_more(self, holdings: Sequence[Book]) -> bool:
        ...

    @abstractmethod
    def loan_period_days(self) -> int:
        ...

    def resolve_overdue(self, days_overdue: int) -> None:
        """Apply the consequence of returning a book ``days_overdue`` days late."""

    def pay_fines(self, confirm: Callable[[int], bool]) -> PaymentOutcome:
        return PaymentOutcome.NOT_APPLICABLE


class Student(User):
    role = "student"
    pays_fines = True

    MAX_BOOKS = 3
    LOAN_DAYS = 15
    FINE_PER_DAY = 10

    def can_borrow_more(self, holdings: Sequence[Book]) -> bool:
        if self.has_unpaid_fines():
            return False
        return len(holdings) < self.MAX_BOOKS

    def loan_period_days(self) -> int:
        return self.LOAN_DAYS

    def resolve_overdue(self, days_overdue: int) -> None:
        if days_overdue > 0:
            self.fine += days_overdue * self.FINE_PER_DAY

    def pay_fines(self, confirm: Callable[[int], bool]) -> PaymentOutcome:
        """Clear the whole balance if ``confirm`` accepts it.

        ``confirm`` receives the outstanding amount and is not called at all
        when nothing is owed.
        """
        if self.fine == 0:
            return PaymentOutcome.NOTHING_DUE
        if not confirm(self.fine):
            return PaymentOutcome.DECLINED
        self.fine = 0
        return PaymentOutcome.PAID


class Faculty(User):
    role = "faculty"
    blocks_on_long_overdue = True

    MAX_BOOKS = 5
    LOAN_DAYS = 30

    def can_borrow_more(self, holdings: Sequence[Book]) -> bool:
        # The fine field is never consulted for faculty
        return len(holdings) < self.MAX_BOOKS

    def loan_period_days(self) -> int:
        return self.LOAN_DAYS


class Librarian(User):
    role = "librarian"

    def can_borrow_more(self, holdings: Sequence[Book]) -> bool:
        return False

    def loan_period_days(self) -> int:
        return 0


USER_TYPES: Dict[str, Type[User]] = {cls.role: cls for cls in (Student, Faculty, Librarian)}


def create_user(role: str, name: str, user_id: str, fine: int = 0) -> User:
    try:
        cls = USER_TYPES[role.strip().lower()]
    except KeyError:
        raise UnknownRoleError(f"Unknown role: {role}") from None
    return cls(name, user_id, fine)
