"""
Live Module
===========

Live Coinbase Prime streaming and offline capture replay for the
best bid/ask printer.
"""

from .best_bid_ask_printer import BestBidAskPrinter, main

__all__ = [
    'BestBidAskPrinter',
    'main'
]
