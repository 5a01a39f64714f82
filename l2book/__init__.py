"""
Level-2 Order Book Best Bid/Ask Printer
======================================

Reconstructs live order books from the Coinbase Prime l2_data feed and prints
the best bid and best ask after every update.

Project Structure:
- l2book/data_ingestion: order books, registry, feed processing, WebSocket transport
- l2book/live_trading: live runner, capture replay and command line entry point
- l2book/utils: configuration and logging
"""

__version__ = "1.0.0"

from l2book.data_ingestion.book_registry import BookRegistry
from l2book.data_ingestion.feed_processor import FeedEventProcessor
from l2book.data_ingestion.order_book import OrderBook

__all__ = [
    "BookRegistry",
    "FeedEventProcessor",
    "OrderBook"
]
