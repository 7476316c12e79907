#!/usr/bin/env python3
"""
Console departure board for one MBTA commuter rail station.

Usage:
    python examples/board_app.py [STOP_ID] [--sort COLUMN]
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add src to path so we can import solariboard
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from solariboard import MBTAClient, SolariBoard, from_env, render_board
from solariboard.display import COLUMNS

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"


def build_parser():
    """Command line options for the board."""
    parser = argparse.ArgumentParser(description="Live departure board for one MBTA commuter rail station.")
    parser.add_argument(
        "stop_id",
        nargs="?",
        help="MBTA stop ID to show; defaults to SOLARI_STOP_ID or place-north.",
    )
    parser.add_argument(
        "-s",
        "--sort",
        help="Column to sort the board by; default is departure order.",
        type=str.capitalize,
        choices=COLUMNS,
    )
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    sort_by = args.sort

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        filename="solariboard.log",
    )

    try:
        config = from_env(stop_id=args.stop_id)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    client = MBTAClient(base_url=config.base_url, timeout=config.request_timeout, api_key=config.api_key)
    board = SolariBoard(client, config)
    board.start()

    try:
        while True:
            print(CLEAR_SCREEN + render_board(board.snapshot(), sort_by=sort_by), flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    finally:
        board.stop()
        client.close()


if __name__ == "__main__":
    main()
