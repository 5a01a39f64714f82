"""
Data Ingestion Module for the Order Book Printer
===============================================

Level-2 market data ingestion with:
- Price-ordered order books with O(log n) best bid/ask
- Per-instrument book registry
- l2_data message classification and atomic batch application
- Signed Coinbase Prime WebSocket subscription with reconnection
"""

from .price_level_map import BookSide, PriceLevel, PriceLevelMap
from .order_book import OrderBook, BestBidAsk, PriceLevelUpdate
from .book_registry import BookRegistry
from .feed_processor import FeedEventProcessor, FeedDecodeError, console_sink
from .subscription import SigningError, build_subscribe_message, sign
from .coinbase_connector import CoinbasePrimeConnector

__all__ = [
    'BookSide',
    'PriceLevel',
    'PriceLevelMap',
    'OrderBook',
    'BestBidAsk',
    'PriceLevelUpdate',
    'BookRegistry',
    'FeedEventProcessor',
    'FeedDecodeError',
    'console_sink',
    'SigningError',
    'build_subscribe_message',
    'sign',
    'CoinbasePrimeConnector'
]
