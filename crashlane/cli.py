#!/usr/bin/env python3
"""
Send a test exception to verify crashlane credentials and connectivity.

Usage:
    crashlane-test --api-key YOUR_KEY
    crashlane-test --api-key YOUR_KEY --api-url http://localhost:8000/ --message "hello"
"""

import argparse
import sys
from typing import List, Optional

from .client import Client
from .config import Configuration
from .errors import ConfigurationError
from .logging_config import configure_logging


class CrashlaneTestException(Exception):
    """Raised on purpose so a real traceback gets reported."""


def raise_test_exception(message: str) -> None:
    raise CrashlaneTestException(message)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Send a test exception to the collector")
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key (default: CRASHLANE_API_KEY)",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Collector base URL (default: CRASHLANE_API_URL or the hosted API)",
    )
    parser.add_argument(
        "--message",
        default="Woohoo! Your crashlane setup works",
        help="Message of the test exception",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO)",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    configuration = Configuration()
    if args.api_key:
        configuration.api_key = args.api_key
    if args.api_url:
        configuration.api_url = args.api_url

    try:
        client = Client(configuration)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    with client:
        try:
            raise_test_exception(args.message)
        except CrashlaneTestException as e:
            response = client.track_exception(e, {"crashlane.custom_data": {"source": "crashlane-test"}})

    if response is None or not response.is_success:
        status = response.status_code if response is not None else "no response"
        print(f"Failed to send test exception ({status})", file=sys.stderr)
        return 1

    print(f"Test exception sent ({response.status_code})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
