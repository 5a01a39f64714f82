"""Shared fixtures for the order book printer tests."""

import json

import pytest
from websockets.exceptions import ConnectionClosedOK

from l2book.data_ingestion.book_registry import BookRegistry
from l2book.data_ingestion.feed_processor import FeedEventProcessor
from l2book.utils.logger import setup_silent_logging


@pytest.fixture(autouse=True, scope="session")
def quiet_logs():
    setup_silent_logging()


def l2_message(event_type, product_id, updates, channel="l2_data", extra_events=()):
    """Build a raw l2_data message; updates are (side, px, qty) tuples."""
    event = {
        "type": event_type,
        "product_id": product_id,
        "updates": [{"side": side, "px": px, "qty": qty} for side, px, qty in updates],
    }
    return json.dumps({"channel": channel, "events": [event, *extra_events]})


@pytest.fixture
def registry():
    return BookRegistry()


@pytest.fixture
def quotes():
    return []


@pytest.fixture
def processor(registry, quotes):
    return FeedEventProcessor(registry, sink=quotes.append)


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, messages):
        self.messages = list(messages)
        self.sent = []
        self.closed = False

    async def send(self, message):
        self.sent.append(message)

    async def recv(self):
        if not self.messages:
            raise ConnectionClosedOK(None, None)
        return self.messages.pop(0)

    async def close(self):
        self.closed = True
