"""
Feed Event Processor
====================

Turns raw l2_data messages into order book mutations:
- Channel filtering and snapshot/incremental classification
- Whole-batch validation before any book is touched
- Awaiting-snapshot gating after reconnects
- Best bid/ask emission to an output sink
"""

import json
import re
from decimal import Decimal, InvalidOperation, getcontext
from typing import Any, Callable, Dict, List, Optional, Union
from loguru import logger

from .book_registry import BookRegistry
from .order_book import BestBidAsk, PriceLevelUpdate
from .price_level_map import BookSide
from ..utils.config import DEFAULT_CHANNEL


# Plain decimal literal, optional exponent; no whitespace, underscores or signs other than minus
NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")

SNAPSHOT_TYPE = "snapshot"
INCREMENTAL_TYPES = frozenset({"update", "l2update"})

SIDE_ALIASES = {
    "bid": BookSide.BID,
    "ask": BookSide.ASK,
    "offer": BookSide.ASK,
}

QuoteSink = Callable[[BestBidAsk], None]


class FeedDecodeError(ValueError):
    """A feed message is malformed and must be dropped"""


def console_sink(quote: BestBidAsk) -> None:
    """Default output sink: one line per two-sided quote on stdout"""
    print(quote.format_line(), flush=True)


def parse_decimal(value: Any, field: str) -> Decimal:
    """Parse a wire number (string or JSON number) into a finite Decimal"""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise FeedDecodeError(f"{field} is not numeric: {value!r}")

    text = str(value)
    if not NUMBER_PATTERN.fullmatch(text):
        raise FeedDecodeError(f"{field} is not numeric: {value!r}")
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise FeedDecodeError(f"{field} is not numeric: {value!r}") from None

    # Book keys are negated and compared under the default context, which
    # must represent them exactly
    context = getcontext()
    if number and not context.Emin <= number.adjusted() <= context.Emax:
        raise FeedDecodeError(f"{field} is out of range: {value!r}")
    if len(number.as_tuple().digits) > context.prec:
        raise FeedDecodeError(f"{field} has more than {context.prec} digits: {value!r}")
    return number


def parse_update(entry: Any) -> PriceLevelUpdate:
    """Decode one ``{side, px, qty}`` entry"""
    if not isinstance(entry, dict):
        raise FeedDecodeError(f"update entry is not an object: {entry!r}")

    raw_side = entry.get("side")
    side = SIDE_ALIASES.get(raw_side) if isinstance(raw_side, str) else None
    if side is None:
        raise FeedDecodeError(f"unknown side: {raw_side!r}")

    price = parse_decimal(entry.get("px"), "px")
    quantity = parse_decimal(entry.get("qty"), "qty")
    if quantity < 0:
        raise FeedDecodeError(f"negative qty: {entry.get('qty')!r}")

    return PriceLevelUpdate(side, price, quantity)


def parse_updates(updates: Any) -> List[PriceLevelUpdate]:
    if not isinstance(updates, list):
        raise FeedDecodeError(f"updates is not an array: {type(updates).__name__}")
    return [parse_update(entry) for entry in updates]


class FeedEventProcessor:
    """
    Applies l2_data messages to the books held by a BookRegistry.

    Purely reactive: no timers, no retries. Messages must be fed in arrival
    order from a single execution context.
    """

    def __init__(self,
                 registry: BookRegistry,
                 sink: Optional[QuoteSink] = None,
                 channel: str = DEFAULT_CHANNEL):
        self.registry = registry
        self.sink = sink if sink is not None else console_sink
        self.channel = channel

        self.stats = {
            'messages_processed': 0,
            'messages_dropped': 0,
            'decode_errors': 0,
            'stale_updates_rejected': 0,
            'quotes_emitted': 0,
            'sink_errors': 0
        }

    def process(self, message: Union[str, bytes, Dict]) -> Optional[BestBidAsk]:
        """
        Process one raw message.

        Returns:
            The emitted best bid/ask, or None when nothing was emitted
        """
        try:
            data = json.loads(message) if isinstance(message, (str, bytes)) else message
            return self._handle(data)
        except (json.JSONDecodeError, UnicodeDecodeError, FeedDecodeError) as e:
            self.stats['decode_errors'] += 1
            self.stats['messages_dropped'] += 1
            logger.error(f"Dropping malformed {self.channel} message: {e}")
            return None

    def _handle(self, data: Any) -> Optional[BestBidAsk]:
        if not isinstance(data, dict):
            raise FeedDecodeError(f"message is not an object: {type(data).__name__}")

        channel = data.get("channel")
        if channel != self.channel:
            logger.trace(f"Ignoring message on channel {channel!r}")
            self.stats['messages_dropped'] += 1
            return None

        events = data.get("events")
        if not isinstance(events, list) or not events:
            self.stats['messages_dropped'] += 1
            return None
        if len(events) > 1:
            logger.debug(f"Only the first of {len(events)} events is applied")

        event = events[0]
        if not isinstance(event, dict):
            raise FeedDecodeError(f"event is not an object: {event!r}")

        event_type = event.get("type")
        instrument_id = event.get("product_id")
        if instrument_id is not None and not isinstance(instrument_id, str):
            raise FeedDecodeError(f"product_id is not a string: {instrument_id!r}")
        if event_type is not None and not isinstance(event_type, str):
            raise FeedDecodeError(f"type is not a string: {event_type!r}")
        if not instrument_id:
            self.stats['messages_dropped'] += 1
            return None

        if event_type == SNAPSHOT_TYPE:
            is_snapshot = True
        elif event_type in INCREMENTAL_TYPES:
            is_snapshot = False
        else:
            logger.warning(f"Unknown event type {event_type!r} for {instrument_id}")
            self.stats['messages_dropped'] += 1
            return None

        try:
            updates = parse_updates(event.get("updates"))
        except FeedDecodeError as e:
            raise FeedDecodeError(f"{instrument_id} {event_type}: {e}") from e

        book = self.registry.get_or_create(instrument_id)

        if book.awaiting_snapshot and not is_snapshot:
            book.record_stale_update()
            self.stats['stale_updates_rejected'] += 1
            logger.debug(f"Rejected incremental for {instrument_id} while awaiting snapshot")
            return None

        book.apply_updates(updates, snapshot=is_snapshot)
        self.stats['messages_processed'] += 1

        quote = book.best_bid_ask()
        if not quote.is_two_sided:
            return None

        self._emit(quote)
        return quote

    def _emit(self, quote: BestBidAsk):
        try:
            self.sink(quote)
            self.stats['quotes_emitted'] += 1
        except Exception as e:
            self.stats['sink_errors'] += 1
            logger.error(f"Output sink failed for {quote.instrument_id}: {e}")

    def get_statistics(self) -> Dict:
        return {
            **self.stats,
            'instruments': len(self.registry)
        }
