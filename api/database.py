"""
In-memory record store for the Bookshelf API.
"""

import threading
from typing import List, Optional

import structlog

from api.models import Book

logger = structlog.get_logger(__name__)


class BookStore:
    """
    Ordered collection of book records held for the process lifetime.

    Records keep insertion order. Every method takes ``lock``; handlers that
    find an index and then mutate hold it across both steps.
    """

    def __init__(self):
        self._books: List[Book] = []
        self.lock = threading.RLock()

    def __len__(self) -> int:
        with self.lock:
            return len(self._books)

    def append(self, book: Book) -> None:
        """Add a record to the end of the collection."""
        with self.lock:
            self._books.append(book)
            total = len(self._books)
        logger.debug("Book appended", book_id=book.id, total=total)

    def find_index_by_id(self, book_id: str) -> Optional[int]:
        """
        Locate a record by identifier.

        Args:
            book_id: Book identifier

        Returns:
            Position of the record, or None when absent
        """
        with self.lock:
            for index, book in enumerate(self._books):
                if book.id == book_id:
                    return index
        return None

    def find_by_id(self, book_id: str) -> Optional[Book]:
        with self.lock:
            index = self.find_index_by_id(book_id)
            if index is None:
                return None
            return self._books[index]

    def get_at(self, index: int) -> Book:
        with self.lock:
            return self._books[index]

    def find_all(self) -> List[Book]:
        """Snapshot of every record in insertion order."""
        with self.lock:
            return list(self._books)

    def replace_at(self, index: int, book: Book) -> None:
        """Overwrite the record at ``index``."""
        with self.lock:
            self._books[index] = book
        logger.debug("Book replaced", book_id=book.id, index=index)

    def remove_at(self, index: int) -> Book:
        """Remove the record at ``index``, shifting later records down."""
        with self.lock:
            book = self._books.pop(index)
        logger.debug("Book removed", book_id=book.id, index=index)
        return book

    def clear(self) -> None:
        with self.lock:
            self._books.clear()
