"""
Command-line interface for the push batch client.

Sends a notification to a topic, a condition or a list of registration
tokens and prints the batch result as JSON.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from pushbatch import __version__
from pushbatch.config import ClientConfig, set_config
from pushbatch.core.client import PushClient
from pushbatch.core.message import Message, MulticastMessage, Notification
from pushbatch.core.result import BatchResult
from pushbatch.errors import PushBatchError


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pushbatch",
        description="Send messages to devices through Firebase Cloud Messaging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    send_parser = subparsers.add_parser("send", help="Send a notification")
    send_parser.add_argument(
        "-k", "--token",
        dest="tokens",
        action="append",
        default=[],
        help="Registration token to send to (repeatable)",
    )
    send_parser.add_argument(
        "-t", "--topic",
        help="The name of the topic to send a message to",
    )
    send_parser.add_argument(
        "-c", "--condition",
        help="The condition to send a message to, e.g. \"'foo' in topics && 'bar' in topics\"",
    )
    send_parser.add_argument(
        "--title",
        help="The notification title",
    )
    send_parser.add_argument(
        "--body",
        help="The notification body",
    )
    send_parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the message, but don't send it",
    )
    send_parser.add_argument(
        "--credentials-location",
        help="Service account JSON credentials (env: PUSHBATCH_CREDENTIALS_LOCATION)",
    )
    send_parser.add_argument(
        "--project-id",
        help="The id of your Firebase project (env: PUSHBATCH_PROJECT_ID)",
    )
    send_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    send_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Create configuration, letting flags override the environment."""
    overrides = {
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    if args.project_id:
        overrides["project_id"] = args.project_id
    if args.credentials_location:
        overrides["credentials_location"] = args.credentials_location
    return ClientConfig(**overrides)


def build_message(args: argparse.Namespace) -> Message:
    """Build the message template from command-line arguments."""
    notification = None
    if args.title or args.body:
        notification = Notification(title=args.title, body=args.body)

    return Message(
        topic=args.topic,
        condition=args.condition,
        notification=notification,
    )


async def send(args: argparse.Namespace, client: Optional[PushClient] = None) -> BatchResult:
    """Send the message described by the arguments."""
    config = build_config(args)
    set_config(config)

    message = build_message(args)
    owned = client is None
    client = client or PushClient(config)

    try:
        if args.tokens:
            multicast = MulticastMessage(tokens=args.tokens, message=message)
            if args.validate_only:
                return await client.send_multicast_dry_run(multicast)
            return await client.send_multicast(multicast)

        if args.validate_only:
            return await client.send_all_dry_run([message])
        return await client.send_all([message])
    finally:
        if owned:
            await client.aclose()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_json)

    if args.command == "send":
        try:
            result = asyncio.run(send(args))
        except (PushBatchError, ValidationError) as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
