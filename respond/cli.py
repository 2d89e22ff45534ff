import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from respond import __version__
from respond.config import DEFAULT_CONFIG_FILE, configure, load_config
from respond.exceptions import ConfigError
from respond.http.ranges import HTTP_PARTIAL_CONTENT
from respond.http.responses import Response

# Logging setup
logger = logging.getLogger("respond")
if not logger.hasHandlers():
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    if os.getenv("RESPOND_DEBUG"):
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        )
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


async def handle_range_command(args_ns) -> int:
    """Resolve a Range request against a file and print the outcome."""
    response = Response.file(
        body=args_ns.path,
        method=args_ns.method,
        range_header=args_ns.range,
    )

    print(f"HTTP/1.1 {response.status_code}")
    for name, value in response.headers.items():
        print(f"{name}: {value}")

    if response.has_body:
        received = 0
        async for chunk in response.bytes():
            received += len(chunk)
        print()
        print(f"[{received} bytes]")

    return 0 if response.status_code == HTTP_PARTIAL_CONTENT else 1


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="respond", description="Inspect how respond serves HTTP byte ranges."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging for respond."
    )
    parser.add_argument(
        "--config",
        "-c",
        help=f"Path to config file. Default: ./{DEFAULT_CONFIG_FILE} if it exists.",
        default=None,
    )

    subparsers = parser.add_subparsers(
        title="commands", dest="command", required=True, help="Command to execute"
    )

    range_parser = subparsers.add_parser(
        "range", help="Resolve a Range header against a file."
    )
    range_parser.add_argument("path", help="File to serve.")
    range_parser.add_argument(
        "--range",
        "-r",
        help='Raw Range header value, e.g. "bytes=0-499". Omit to see the missing header case.',
        default=None,
    )
    range_parser.add_argument(
        "--method",
        "-m",
        choices=["GET", "HEAD"],
        type=str.upper,
        default="GET",
        help="Request method. HEAD resolves headers without reading the file. Default: GET",
    )
    range_parser.set_defaults(func=handle_range_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args_ns = parser.parse_args(argv)

    if args_ns.debug or os.getenv("RESPOND_DEBUG"):
        os.environ["RESPOND_DEBUG"] = "1"
        logger.setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled.")

    config_path = args_ns.config
    if config_path is None and Path(DEFAULT_CONFIG_FILE).exists():
        config_path = DEFAULT_CONFIG_FILE

    if config_path:
        try:
            configure(load_config(config_path))
        except ConfigError as e:
            logger.error(f"Error loading configuration: {e}")
            return 2

    return asyncio.run(args_ns.func(args_ns))


if __name__ == "__main__":
    sys.exit(main())
