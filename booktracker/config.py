import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # Data files
    data_dir: str = os.getenv("BOOKTRACKER_DATA_DIR", ".")
    books_file: str = os.getenv("BOOKTRACKER_BOOKS_FILE", "books.txt")
    genres_file: str = os.getenv("BOOKTRACKER_GENRES_FILE", "genres.txt")
    encoding: str = os.getenv("BOOKTRACKER_ENCODING", "utf-8")

    # Logging
    log_level: str = os.getenv("BOOKTRACKER_LOG_LEVEL", "INFO").upper()

    @property
    def books_path(self) -> str:
        return os.path.join(self.data_dir, self.books_file)

    @property
    def genres_path(self) -> str:
        return os.path.join(self.data_dir, self.genres_file)


settings = Settings()
