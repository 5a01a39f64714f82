"""
Coinbase Prime WebSocket Connector
==================================

WebSocket client for the l2_data channel with:
- Signed subscription sent on every (re)connect
- Strictly sequential hand-off of raw messages to the FeedEventProcessor
- Auto-reconnection with exponential backoff
- Book invalidation after reconnects so stale state is never trusted
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException
from loguru import logger

from .book_registry import BookRegistry
from .feed_processor import FeedEventProcessor
from .subscription import SigningError, build_subscribe_message
from ..utils.config import FeedConfig, SubscriptionCredentials


ConnectFactory = Callable[..., Awaitable[Any]]


class CoinbasePrimeConnector:
    """
    Transport for one l2_data subscription.

    The connector owns the connection lifecycle only; book state lives in the
    BookRegistry and is mutated exclusively through the FeedEventProcessor.
    """

    def __init__(self,
                 credentials: SubscriptionCredentials,
                 feed: FeedConfig,
                 registry: BookRegistry,
                 processor: FeedEventProcessor,
                 connect_factory: Optional[ConnectFactory] = None,
                 receive_timeout: float = 30.0):

        self.credentials = credentials
        self.ws_url = feed.ws_url
        self.channel = feed.channel
        self.product_ids: List[str] = list(feed.product_ids)
        self.registry = registry
        self.processor = processor
        self._connect_factory = connect_factory or websockets.connect
        self.receive_timeout = receive_timeout

        # WebSocket connection state
        self.websocket = None
        self.is_connected = False
        self.is_running = False
        self.reconnect_count = 0
        self._has_connected = False

        self.stats = {
            'messages_received': 0,
            'connection_errors': 0,
            'reconnections': 0,
            'processing_errors': 0,
            'last_message_time': 0.0
        }

        # Reconnection settings
        self.ping_interval = feed.ping_interval
        self.ping_timeout = feed.ping_timeout
        self.max_reconnect_attempts = feed.max_reconnect_attempts
        self.initial_reconnect_delay = feed.reconnect_delay
        self.reconnect_delay = feed.reconnect_delay
        self.max_reconnect_delay = feed.max_reconnect_delay

        logger.info(f"CoinbasePrimeConnector initialized for {self.product_ids} on {self.channel}")

    async def connect(self) -> bool:
        """Open the WebSocket and send the signed subscription"""
        try:
            logger.info(f"Connecting to Coinbase Prime WebSocket: {self.ws_url}")

            websocket = await self._connect_factory(
                self.ws_url,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
                close_timeout=10
            )
            self.websocket = websocket

            # Nothing from the previous connection can be trusted any more
            if self._has_connected:
                self.registry.invalidate_all()
                self.stats['reconnections'] += 1

            await websocket.send(build_subscribe_message(
                self.credentials, self.channel, self.product_ids
            ))

            self._has_connected = True
            self.is_connected = True
            self.reconnect_count = 0
            self.reconnect_delay = self.initial_reconnect_delay

            logger.success(f"Subscribed to {self.channel} for {', '.join(self.product_ids)}")
            return True

        except SigningError:
            raise
        except Exception as e:
            logger.error(f"Failed to connect: {e}")
            self.stats['connection_errors'] += 1
            self.is_connected = False
            return False

    async def disconnect(self):
        """Gracefully disconnect WebSocket"""
        self.is_running = False
        await self._close_websocket()
        logger.info("WebSocket disconnected")

    async def _close_websocket(self):
        websocket, self.websocket = self.websocket, None
        self.is_connected = False
        if websocket is None:
            return
        try:
            await websocket.close()
        except Exception as e:
            logger.error(f"Error during disconnect: {e}")

    async def _message_handler(self):
        """Receive loop; each message is fully processed before the next recv"""
        while self.is_running and self.websocket is not None:
            try:
                message = await asyncio.wait_for(
                    self.websocket.recv(),
                    timeout=self.receive_timeout
                )
            except asyncio.TimeoutError:
                logger.warning("WebSocket receive timeout")
                break
            except ConnectionClosed as e:
                logger.warning(f"WebSocket connection closed: {e}")
                break
            except WebSocketException as e:
                logger.error(f"WebSocket error: {e}")
                self.stats['connection_errors'] += 1
                break

            self.stats['messages_received'] += 1
            self.stats['last_message_time'] = time.time()
            try:
                self.processor.process(message)
            except Exception as e:
                logger.error(f"Error processing message: {e}")
                self.stats['processing_errors'] += 1

    async def _reconnect_loop(self) -> bool:
        """Handle reconnection with exponential backoff"""
        while self.is_running and self.reconnect_count < self.max_reconnect_attempts:
            logger.info(f"Attempting reconnection #{self.reconnect_count + 1} "
                        f"in {self.reconnect_delay:.1f}s")

            await asyncio.sleep(self.reconnect_delay)

            if await self.connect():
                logger.success("Reconnection successful")
                return True

            self.reconnect_count += 1
            self.reconnect_delay = min(
                self.reconnect_delay * 2,
                self.max_reconnect_delay
            )

        if self.is_running:
            logger.error("Max reconnection attempts reached")
        return False

    async def run(self):
        """Main run loop with automatic reconnection"""
        self.is_running = True

        while self.is_running:
            if not self.is_connected:
                if not await self.connect():
                    if not await self._reconnect_loop():
                        break
                    continue

            await self._message_handler()
            await self._close_websocket()

            if self.is_running:
                logger.info("Connection lost, reconnecting")

        self.is_running = False

    def get_statistics(self) -> Dict:
        """Get connector statistics"""
        return {
            **self.stats,
            'is_connected': self.is_connected,
            'is_running': self.is_running,
            'reconnect_count': self.reconnect_count,
            'product_ids': self.product_ids,
            'processor_stats': self.processor.get_statistics()
        }
