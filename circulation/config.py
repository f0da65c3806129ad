import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Data files
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "BookData.csv")
    accounts_file: str = os.getenv("LIBRARY_ACCOUNTS_FILE", "AccountData.csv")
    # Flush after every borrow/return/add/remove instead of only at shutdown
    autosave: bool = _env_flag("LIBRARY_AUTOSAVE")

    # Application
    app_name: str = os.getenv("APP_NAME", "Library Circulation")
    log_level: str = os.getenv("LIBRARY_LOG_LEVEL", "WARNING").upper()


settings = Settings()
