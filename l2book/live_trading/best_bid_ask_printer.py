"""
Best Bid/Ask Printer
====================

Wires configuration, logging, the book registry, the feed processor and the
Coinbase Prime connector together, and prints one line per two-sided quote.
Also replays recorded l2_data captures (one JSON message per line) offline.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

from ..data_ingestion.book_registry import BookRegistry
from ..data_ingestion.coinbase_connector import CoinbasePrimeConnector
from ..data_ingestion.feed_processor import FeedEventProcessor, QuoteSink
from ..data_ingestion.subscription import SigningError
from ..utils.config import Config, ConfigurationError, load_config
from ..utils.logger import get_logger, log_config, setup_logging_from_name


class BestBidAskPrinter:
    """
    Owns the registry and processor for one run:
    - Live mode streams from Coinbase Prime until interrupted
    - Replay mode feeds a capture file through the same processor
    """

    def __init__(self, config: Config, sink: Optional[QuoteSink] = None):
        self.config = config
        self.logger = get_logger('best_bid_ask_printer')

        self.registry = BookRegistry()
        self.processor = FeedEventProcessor(
            self.registry,
            sink=sink,
            channel=config.feed.channel
        )
        self.connector: Optional[CoinbasePrimeConnector] = None

    def build_connector(self) -> CoinbasePrimeConnector:
        if self.config.credentials is None:
            raise ConfigurationError("Live mode requires API credentials")

        self.connector = CoinbasePrimeConnector(
            credentials=self.config.credentials,
            feed=self.config.feed,
            registry=self.registry,
            processor=self.processor
        )
        return self.connector

    async def run_live(self):
        """Stream until the connector gives up or the task is cancelled"""
        connector = self.connector or self.build_connector()
        try:
            await connector.run()
        finally:
            await connector.disconnect()
            self.logger.info(f"Feed statistics: {connector.get_statistics()}")

    def replay(self, path: Path) -> Dict:
        """
        Feed a JSON-lines capture through the processor

        Returns:
            Processor statistics after the replay
        """
        self.logger.info(f"Replaying {path}")
        with open(path, "r", encoding="utf-8") as capture:
            for line in capture:
                line = line.strip()
                if line:
                    self.processor.process(line)

        stats = self.processor.get_statistics()
        self.logger.info(f"Replay finished: {stats}")
        return stats


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print best bid/ask from the Coinbase Prime l2_data feed"
    )
    parser.add_argument("--log-level", default="normal",
                        choices=["silent", "quiet", "normal", "verbose", "trace"],
                        help="Console log level (logs go to stderr)")
    parser.add_argument("--log-file", default=None,
                        help="Also write verbose logs to this file")
    parser.add_argument("--products", default=None,
                        help="Comma-separated product ids, overrides L2BOOK_PRODUCT_IDS")
    parser.add_argument("--replay", type=Path, default=None,
                        help="Replay a JSON-lines capture instead of connecting")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging_from_name(args.log_level)
    if args.log_file:
        log_config.add_file_logging(args.log_file)

    logger = get_logger('main')

    try:
        config = load_config(require_credentials=args.replay is None)
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        return 2

    if args.products:
        config.feed.product_ids = [p.strip() for p in args.products.split(",") if p.strip()]

    printer = BestBidAskPrinter(config)

    if args.replay is not None:
        try:
            printer.replay(args.replay)
        except OSError as e:
            logger.critical(f"Cannot read replay file: {e}")
            return 1
        return 0

    try:
        asyncio.run(printer.run_live())
    except SigningError as e:
        logger.critical(f"Subscription signing failed: {e}")
        return 3
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
