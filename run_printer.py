"""
Best Bid/Ask Printer Launcher
=============================

Simple script to launch the live printer (or a capture replay).

    API_KEY=... SECRET_KEY=... PASSPHRASE=... SVC_ACCOUNTID=... python run_printer.py
    python run_printer.py --replay captures/l2_data.jsonl --log-level quiet
"""

import sys

from l2book.live_trading.best_bid_ask_printer import main

if __name__ == "__main__":
    sys.exit(main())
