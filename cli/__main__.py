"""Entry point for the romatype CLI client."""

import argparse
import logging
import sys

from core.config import PRACTICE_MODES
from cli.api_client import RomatypeAPIClient
from cli.console import ConsoleUI


def parse_count(value: str):
    if value == 'all':
        return value
    count = int(value)
    if count < 1:
        raise argparse.ArgumentTypeError('count must be positive')
    return count


def main():
    parser = argparse.ArgumentParser(description='romatype - adaptive romaji typing practice')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--count',
        type=parse_count,
        default=None,
        help="Number of words, or 'all' (default: from settings)"
    )
    parser.add_argument(
        '--mode',
        choices=PRACTICE_MODES,
        default=None,
        help='Practice mode (default: from settings)'
    )
    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Do not save results to the server'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    client = RomatypeAPIClient(base_url=args.server)
    ui = ConsoleUI(client, count=args.count, mode=args.mode, save=not args.no_save)

    try:
        ui.run()
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()
