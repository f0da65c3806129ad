import logging

from circulation import storage
from circulation.book import Book, BORROWED
from circulation.users import Faculty, Student


def test_load_catalog(data_files):
    books_file, _ = data_files
    books = storage.load_catalog(books_file)
    assert [b.title for b in books][:2] == ["Dune", "Emma"]
    assert books[0].year == 1965
    assert all(b.is_available() for b in books)


def test_load_catalog_skips_malformed_lines(tmp_path, caplog):
    path = tmp_path / "books.csv"
    path.write_text(
        "Dune,Frank Herbert,1,Ace,1965,Available,0,0,-None-\n"
        "\n"
        "abc\n"
        "Short,Record,2,Pub\n"
        "Emma,Jane Austen,3,Penguin,eighteen,Available,0,0,-None-\n"
        "Walden,Henry Thoreau,4,Dover,1854,Lost,0,0,-None-\n"
        "Beloved,Toni Morrison,5,Vintage,1987,Borrowed,20000,20015,S001\n",
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING, logger="circulation.storage"):
        books = storage.load_catalog(path)

    assert [b.title for b in books] == ["Dune", "Beloved"]
    assert books[1].status == BORROWED
    assert books[1].due_date == 20015
    assert books[1].borrowed_by == "S001"
    assert len([r for r in caplog.records if "Skipping" in r.getMessage()]) == 3


def test_missing_files_load_empty(tmp_path):
    assert storage.load_catalog(tmp_path / "nope.csv") == []
    assert storage.load_accounts(tmp_path / "nope.csv") == []


def test_load_accounts_builds_role_variants(data_files):
    _, accounts_file = data_files
    accounts = {a.username: a for a in storage.load_accounts(accounts_file)}

    assert isinstance(accounts["alice"].user, Student)
    assert isinstance(accounts["bob"].user, Faculty)
    assert accounts["carol"].role == "librarian"
    assert accounts["dave"].user.history == ("Emma", "Dune")


def test_load_accounts_skips_unknown_role_and_bad_fine(tmp_path, caplog):
    path = tmp_path / "accounts.csv"
    path.write_text(
        "alice,pw1,student,S001,0\n"
        "eve,pw,janitor,J001,0\n"
        "frank,pw,student,S009,lots\n"
        "gina,pw,student\n",
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING, logger="circulation.storage"):
        accounts = storage.load_accounts(path)

    assert [a.username for a in accounts] == ["alice"]
    assert any("Unknown role: janitor" in r.getMessage() for r in caplog.records)


def test_save_catalog_format(tmp_path):
    path = tmp_path / "books.csv"
    book = Book("Dune", "Frank Herbert", "1", "Ace", 1965)
    book.status, book.borrow_date, book.due_date, book.borrowed_by = BORROWED, 10, 25, "S001"
    storage.save_catalog(path, [book, Book("Emma", "Jane Austen", "2", "Penguin", 1815)])

    assert path.read_text(encoding="utf-8").splitlines() == [
        "Dune,Frank Herbert,1,Ace,1965,Borrowed,10,25,S001",
        "Emma,Jane Austen,2,Penguin,1815,Available,0,0,-None-",
    ]
    assert not (tmp_path / "books.csv.tmp").exists()


def test_save_accounts_keeps_fine_and_history(data_files, tmp_path):
    _, accounts_file = data_files
    accounts = storage.load_accounts(accounts_file)
    alice = accounts[0].user
    alice.fine = 40
    alice.add_history("Walden")

    out = tmp_path / "out.csv"
    storage.save_accounts(out, accounts)
    lines = out.read_text(encoding="utf-8").splitlines()

    assert lines[0] == "alice,pw1,student,S001,40,Walden"
    assert lines[3] == "dave,pw4,student,S002,0,Emma,Dune"
    reloaded = storage.load_accounts(out)
    assert reloaded[0].user.fine == 40
    assert reloaded[0].user.history == ("Walden",)


def test_load_catalog_skips_line_with_invalid_utf8(tmp_path, caplog):
    path = tmp_path / "books.csv"
    path.write_bytes(
        b"Dune,Frank Herbert,1,Ace,1965,Available,0,0,-None-\n"
        b"Caf\xe9 Society,Someone,2,Pub,1999,Available,0,0,-None-\n"
        b"Emma,Jane Austen,3,Penguin,1815,Available,0,0,-None-\n"
    )
    with caplog.at_level(logging.WARNING, logger="circulation.storage"):
        books = storage.load_catalog(path)

    assert [b.title for b in books] == ["Dune", "Emma"]
    assert any("not valid UTF-8" in r.getMessage() for r in caplog.records)


def test_load_accounts_skips_line_with_invalid_utf8(tmp_path):
    path = tmp_path / "accounts.csv"
    path.write_bytes(b"alice,pw1,student,S001,0\nr\xe9mi,pw,student,S002,0\n")
    assert [a.username for a in storage.load_accounts(path)] == ["alice"]


def test_load_catalog_skips_inconsistent_status(tmp_path, caplog):
    path = tmp_path / "books.csv"
    path.write_text(
        "Dune,Frank Herbert,1,Ace,1965,Borrowed,20000,20015,-None-\n"
        "Emma,Jane Austen,2,Penguin,1815,Available,0,0,S001\n"
        "Walden,Henry Thoreau,3,Dover,1854,Available,20000,20015,-None-\n"
        "Beloved,Toni Morrison,4,Vintage,1987,Borrowed,20000,20015,S001\n",
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING, logger="circulation.storage"):
        books = storage.load_catalog(path)

    assert [b.title for b in books] == ["Beloved"]
    assert any("borrowed book without a holder" in r.getMessage() for r in caplog.records)
