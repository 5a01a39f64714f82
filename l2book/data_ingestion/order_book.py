"""
Level-2 Order Book
==================

Maintains the full price-ordered book for one instrument from snapshot and
incremental l2_data events, and derives best bid/ask after every mutation.
"""

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from loguru import logger

from .price_level_map import BookSide, PriceLevel, PriceLevelMap


PRICE_FORMAT = "{:.8f}"
QUANTITY_FORMAT = "{:.6f}"


@dataclass(frozen=True)
class PriceLevelUpdate:
    """One decoded entry of an l2_data ``updates`` batch"""
    side: BookSide
    price: Decimal
    quantity: Decimal


@dataclass(frozen=True)
class BestBidAsk:
    """Best bid and best ask of one instrument, read atomically"""
    instrument_id: str
    bid: Optional[PriceLevel]
    ask: Optional[PriceLevel]

    @property
    def is_two_sided(self) -> bool:
        return self.bid is not None and self.ask is not None

    def format_line(self) -> str:
        """Render the console line; both sides must be present"""
        if not self.is_two_sided:
            raise ValueError(f"{self.instrument_id}: best bid/ask is one-sided")
        return (
            f"{self.instrument_id} → "
            f"Best Bid: {PRICE_FORMAT.format(self.bid.price)} "
            f"(qty {QUANTITY_FORMAT.format(self.bid.quantity)}) | "
            f"Best Ask: {PRICE_FORMAT.format(self.ask.price)} "
            f"(qty {QUANTITY_FORMAT.format(self.ask.quantity)})"
        )


class OrderBook:
    """
    Order book for a single instrument:
    - Bids sorted descending, asks ascending, zero levels never stored
    - Snapshot resets and batch application happen under one lock, so
      readers never see a half-applied batch
    - Awaiting-snapshot state after a transport reconnect
    """

    def __init__(self, instrument_id: str):
        self.instrument_id = instrument_id

        # Order book state
        self.bids = PriceLevelMap(BookSide.BID)
        self.asks = PriceLevelMap(BookSide.ASK)

        # Set after a reconnect; cleared by the next snapshot
        self.awaiting_snapshot = False

        self._lock = threading.RLock()

        # Statistics
        self.stats = {
            'snapshot_count': 0,
            'update_count': 0,
            'levels_applied': 0,
            'stale_updates_rejected': 0
        }

        logger.info(f"OrderBook created for {instrument_id}")

    def _side(self, side: BookSide) -> PriceLevelMap:
        return self.bids if side is BookSide.BID else self.asks

    def reset(self):
        """Empty both sides and mark the book as synchronized"""
        with self._lock:
            self.bids.clear()
            self.asks.clear()
            self.awaiting_snapshot = False

    def apply_update(self, side: BookSide, price: Decimal, quantity: Decimal):
        """
        Apply one level change. Quantity 0 removes the level (absent is fine),
        anything else inserts or overwrites it.
        """
        with self._lock:
            self._side(side).set(price, quantity)

    def apply_updates(self, updates: Iterable[PriceLevelUpdate], snapshot: bool = False):
        """
        Apply a validated batch as one unit.

        Args:
            updates: Decoded level changes in arrival order
            snapshot: Reset the book before applying the batch
        """
        with self._lock:
            if snapshot:
                self.reset()
                self.stats['snapshot_count'] += 1
            else:
                self.stats['update_count'] += 1

            applied = 0
            for update in updates:
                self._side(update.side).set(update.price, update.quantity)
                applied += 1
            self.stats['levels_applied'] += applied

        if snapshot:
            logger.debug(f"Snapshot applied for {self.instrument_id}: "
                         f"{len(self.bids)} bids, {len(self.asks)} asks")

    def invalidate(self):
        """Stop trusting the book until the next snapshot arrives"""
        with self._lock:
            self.awaiting_snapshot = True

    def record_stale_update(self):
        with self._lock:
            self.stats['stale_updates_rejected'] += 1

    def best_bid(self) -> Optional[PriceLevel]:
        """Highest bid level, or None if there are no bids"""
        with self._lock:
            return self.bids.best()

    def best_ask(self) -> Optional[PriceLevel]:
        """Lowest ask level, or None if there are no asks"""
        with self._lock:
            return self.asks.best()

    def best_bid_ask(self) -> BestBidAsk:
        with self._lock:
            return BestBidAsk(self.instrument_id, self.bids.best(), self.asks.best())

    def quantity_at(self, side: BookSide, price: Decimal) -> Optional[Decimal]:
        with self._lock:
            return self._side(side).get(price)

    @property
    def bid_count(self) -> int:
        return len(self.bids)

    @property
    def ask_count(self) -> int:
        return len(self.asks)

    def get_depth(self, levels: int = 5) -> Dict[str, List[PriceLevel]]:
        """Get order book depth for specified number of levels"""
        with self._lock:
            return {
                'bids': self.bids.top(levels),
                'asks': self.asks.top(levels)
            }

    def get_statistics(self) -> Dict:
        """Get order book statistics"""
        with self._lock:
            return {
                **self.stats,
                'instrument_id': self.instrument_id,
                'current_levels': {'bids': len(self.bids), 'asks': len(self.asks)},
                'awaiting_snapshot': self.awaiting_snapshot
            }
