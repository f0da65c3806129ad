"""Flat-file persistence for the catalog and the account registry.

Both files hold one comma-separated record per line. Embedded commas are not
escaped, so a title containing a comma does not survive a round trip.

Catalog:  title,author,isbn,publisher,year,status,borrow_date,due_date,borrowed_by
Accounts: username,password,role,user_id,fine[,returned title...]

Loading is best effort: a malformed line is logged and skipped, never fatal.
Saving overwrites the whole file through a temporary file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from circulation.account import Account
from circulation.book import Book
from circulation.exceptions import UnknownRoleError
from circulation.users import create_user

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Shorter lines cannot hold a record and are treated as blank
_MIN_LINE_LENGTH = 5


def _read_records(path: Path) -> Iterator[tuple[int, List[str]]]:
    with open(path, "rb") as f:
        for lineno, raw in enumerate(f, 1):
            try:
                line = raw.decode("utf-8").rstrip("\r\n")
            except UnicodeDecodeError as e:
                logger.warning(f"Skipping record {path}:{lineno}: not valid UTF-8 ({e.reason})")
                continue
            if len(line) < _MIN_LINE_LENGTH:
                continue
            yield lineno, line.split(",")


def _write_records(path: Path, records: Iterable[List[str]]) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        for fields in records:
            f.write(",".join(fields) + "\n")
    os.replace(tmp_path, path)


def load_catalog(source: PathLike) -> List[Book]:
    path = Path(source)
    if not path.exists():
        logger.warning(f"Could not open {path}. Will create on save.")
        return []

    books: List[Book] = []
    for lineno, fields in _read_records(path):
        try:
            books.append(Book.from_record(fields))
        except ValueError as e:
            logger.warning(f"Skipping catalog record {path}:{lineno}: {e}")
    logger.info(f"Loaded {len(books)} books from {path}")
    return books


def save_catalog(dest: PathLike, books: Iterable[Book]) -> None:
    _write_records(Path(dest), (book.to_record() for book in books))


def load_accounts(source: PathLike) -> List[Account]:
    path = Path(source)
    if not path.exists():
        logger.warning(f"Could not open {path}. Will create on save.")
        return []

    accounts: List[Account] = []
    for lineno, fields in _read_records(path):
        if len(fields) < 5:
            logger.warning(f"Skipping account record {path}:{lineno}: expected 5 fields, got {len(fields)}")
            continue
        username, password, role, user_id, raw_fine = fields[:5]
        try:
            fine = int(raw_fine)
        except ValueError:
            logger.warning(f"Skipping account record {path}:{lineno}: fine {raw_fine!r} is not an integer")
            continue
        try:
            user = create_user(role, username, user_id, fine)
        except UnknownRoleError as e:
            logger.warning(f"Skipping account record {path}:{lineno}: {e}")
            continue
        for title in fields[5:]:
            if title:
                user.add_history(title)
        accounts.append(Account(username, password, user.role, user))
    logger.info(f"Loaded {len(accounts)} accounts from {path}")
    return accounts


def save_accounts(dest: PathLike, accounts: Iterable[Account]) -> None:
    _write_records(Path(dest), (account.to_record() for account in accounts))
