"""
Price-ordered level storage for one side of an order book.
"""

import operator
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterator, List, Optional

from sortedcontainers import SortedDict


class BookSide(Enum):
    """Order book side"""
    BID = "bid"
    ASK = "ask"


@dataclass(frozen=True)
class PriceLevel:
    """Aggregated resting quantity at one price"""
    price: Decimal
    quantity: Decimal


class PriceLevelMap:
    """
    Ordered price -> quantity map where the first entry is always the best level.

    Bids sort descending and asks ascending, so ``best()`` is ``peekitem(0)``
    in both cases. Zero quantities are never stored.
    """

    def __init__(self, side: BookSide):
        self.side = side
        if side is BookSide.BID:
            self._levels = SortedDict(operator.neg)
        else:
            self._levels = SortedDict()

    def set(self, price: Decimal, quantity: Decimal) -> None:
        """Insert, overwrite or (quantity == 0) remove a level"""
        if quantity == 0:
            self._levels.pop(price, None)
        else:
            self._levels[price] = quantity

    def get(self, price: Decimal) -> Optional[Decimal]:
        return self._levels.get(price)

    def best(self) -> Optional[PriceLevel]:
        if not self._levels:
            return None
        price, quantity = self._levels.peekitem(0)
        return PriceLevel(price, quantity)

    def top(self, levels: int) -> List[PriceLevel]:
        """Best ``levels`` entries, best first"""
        return [PriceLevel(price, self._levels[price])
                for price in self._levels.islice(0, levels)]

    def clear(self) -> None:
        self._levels.clear()

    def __len__(self) -> int:
        return len(self._levels)

    def __contains__(self, price: Decimal) -> bool:
        return price in self._levels

    def __iter__(self) -> Iterator[PriceLevel]:
        for price, quantity in self._levels.items():
            yield PriceLevel(price, quantity)
