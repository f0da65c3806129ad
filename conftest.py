import pytest

from circulation.config import settings
from circulation.library import Library
from circulation.ui_helpers import OUTPUT_MODE_ENV

BOOKS = """\
Dune,Frank Herbert,9780441013593,Ace,1965,Available,0,0,-None-
Emma,Jane Austen,9780141439587,Penguin,1815,Available,0,0,-None-
Ulysses,James Joyce,9780199535675,OUP,1922,Available,0,0,-None-
Walden,Henry Thoreau,9780486284958,Dover,1854,Available,0,0,-None-
Beloved,Toni Morrison,9781400033416,Vintage,1987,Available,0,0,-None-
Middlemarch,George Eliot,9780141439549,Penguin,1871,Available,0,0,-None-
"""

ACCOUNTS = """\
alice,pw1,student,S001,0
bob,pw2,faculty,F001,0
carol,pw3,librarian,L001,0
dave,pw4,student,S002,0,Emma,Dune
"""


@pytest.fixture
def data_files(tmp_path):
    # Fresh catalog and account files for every test
    books_file = tmp_path / "BookData.csv"
    accounts_file = tmp_path / "AccountData.csv"
    books_file.write_text(BOOKS, encoding="utf-8")
    accounts_file.write_text(ACCOUNTS, encoding="utf-8")
    return books_file, accounts_file


@pytest.fixture
def lib(data_files):
    books_file, accounts_file = data_files
    return Library(books_file, accounts_file)


@pytest.fixture
def cli_env(data_files, monkeypatch):
    """Point the CLI at the per-test data files with plain output."""
    books_file, accounts_file = data_files
    monkeypatch.setattr(settings, "books_file", str(books_file))
    monkeypatch.setattr(settings, "accounts_file", str(accounts_file))
    monkeypatch.setattr(settings, "autosave", False)
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")
    return data_files
