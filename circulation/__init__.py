"""Library Circulation - Core Package

This package contains:
- Book records (book.py)
- Role policies for students, faculty and librarians (users.py)
- Login accounts (account.py)
- The circulation engine and registry (library.py)
- Flat-file persistence (storage.py)
- CLI and interactive menu (main.py)
"""

__version__ = "1.0.0"
