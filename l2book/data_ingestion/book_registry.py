"""
Instrument id -> OrderBook registry with lazy creation.
"""

import threading
from typing import Dict, Optional
from loguru import logger

from .order_book import OrderBook


class BookRegistry:
    """Owns every OrderBook; one book per instrument for the process lifetime"""

    def __init__(self):
        self._books: Dict[str, OrderBook] = {}
        self._lock = threading.Lock()

    def get_or_create(self, instrument_id: str) -> OrderBook:
        with self._lock:
            book = self._books.get(instrument_id)
            if book is None:
                book = OrderBook(instrument_id)
                self._books[instrument_id] = book
            return book

    def get(self, instrument_id: str) -> Optional[OrderBook]:
        with self._lock:
            return self._books.get(instrument_id)

    def invalidate_all(self) -> int:
        """
        Mark every known book as awaiting a snapshot.

        Called after a transport reconnect, since continuity with the
        previous connection cannot be assumed.

        Returns:
            Number of books invalidated
        """
        with self._lock:
            books = list(self._books.values())

        for book in books:
            book.invalidate()

        if books:
            logger.info(f"Awaiting fresh snapshots for {len(books)} instrument(s)")
        return len(books)

    def __len__(self) -> int:
        return len(self._books)

    def __contains__(self, instrument_id: str) -> bool:
        return instrument_id in self._books
