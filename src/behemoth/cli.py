"""
Command-line interface for the load generator.

Provides commands for:
- Streaming synthetic channel data to an OTLP endpoint (or a file / stdout)
- Inspecting the channel matrix a configuration produces
"""

import argparse
import asyncio
import logging
import os
import sys

from . import __version__
from .config import DEFAULT_ASSET, StreamConfig, resolve_config
from .errors import BehemothError, ConfigurationError, SubmissionError
from .runner import build_flow_config, run_stream

logger = logging.getLogger("behemoth")

_MAX_CHANNELS_SHOWN = 20
_LOG_LEVEL_ENV = "BEHEMOTH_LOG_LEVEL"


def _add_matrix_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-n",
        "--num-components",
        type=int,
        default=None,
        help="The number of components the asset has (default: 100)",
    )
    parser.add_argument(
        "-c",
        "--channels-per-component",
        type=int,
        default=None,
        help="The number of channels per component (default: 10)",
    )
    parser.add_argument(
        "-f",
        "--frequency",
        type=int,
        default=None,
        help="The desired frequency in which to send data in Hz (default: 1000)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file with configuration values (or set BEHEMOTH_CONFIG)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="behemoth",
        description="Synthetic channel-matrix load generator for telemetry ingestion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Stream 100x10 channels at 1 kHz over OTLP/gRPC
  behemoth stream --uri https://ingest.example.com:443 --apikey $KEY

  # Stream to a local collector without TLS
  behemoth stream -u http://localhost:4317 -k dev -d -n 2 -c 3 -f 100

  # Write 500 messages to a file instead of OTLP
  behemoth stream --output-file flows.jsonl --count 500

  # Show the channel matrix for a configuration
  behemoth channels -n 2 -c 3
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO, or BEHEMOTH_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    stream_parser = subparsers.add_parser("stream", help="Stream synthetic data until interrupted")
    stream_parser.add_argument(
        "-a",
        "--asset",
        type=str,
        default=None,
        help=f"Asset name (default: {DEFAULT_ASSET}, or BEHEMOTH_ASSET)",
    )
    _add_matrix_args(stream_parser)
    stream_parser.add_argument(
        "-k",
        "--apikey",
        type=str,
        default=None,
        help="API key for the ingestion endpoint (or BEHEMOTH_APIKEY)",
    )
    stream_parser.add_argument(
        "-u",
        "--uri",
        type=str,
        default=None,
        help="Ingestion URL, http/https must be included (or BEHEMOTH_URI)",
    )
    stream_parser.add_argument(
        "-d",
        "--disable-tls",
        action="store_true",
        default=None,
        help="Disables TLS for environments that don't use it",
    )
    stream_parser.add_argument(
        "--protocol",
        type=str,
        default=None,
        choices=["grpc", "http"],
        help="OTLP protocol (default: grpc)",
    )
    stream_parser.add_argument(
        "--output-file",
        type=str,
        default=None,
        help="Output file path (if set, exports to file instead of OTLP)",
    )
    stream_parser.add_argument(
        "--console",
        action="store_true",
        default=None,
        help="Print exported flows to stdout instead of sending them",
    )
    stream_parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Flows buffered per export (default: 100)",
    )
    stream_parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retries for a failed export before the stream stops (default: 3)",
    )
    stream_parser.add_argument(
        "--count",
        type=int,
        default=None,
        help="Stop after this many messages (default: run until interrupted)",
    )

    channels_parser = subparsers.add_parser("channels", help="Show the channel matrix")
    _add_matrix_args(channels_parser)

    return parser


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from --log-level or BEHEMOTH_LOG_LEVEL."""
    name = (level or os.environ.get(_LOG_LEVEL_ENV, "") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _overrides(args: argparse.Namespace, *names: str) -> dict:
    return {name: getattr(args, name, None) for name in names}


def cmd_stream(args: argparse.Namespace):
    """Stream synthetic channel data until interrupted."""
    try:
        config = resolve_config(
            args.config,
            **_overrides(
                args,
                "asset",
                "num_components",
                "channels_per_component",
                "frequency",
                "uri",
                "apikey",
                "disable_tls",
                "protocol",
                "output_file",
                "console",
                "batch_size",
                "max_retries",
                "count",
            ),
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    print("Starting synthetic stream...")
    print(f"   Asset: {config.asset}")
    print(f"   Channels: {config.num_components} x {config.channels_per_component}")
    print(f"   Frequency: {config.frequency} Hz")
    if config.output_file:
        print(f"   Output: {config.output_file}")
    elif config.console:
        print("   Output: console")
    else:
        tls = "disabled" if config.disable_tls else "enabled"
        print(f"   Output: OTLP {config.protocol} {config.uri} (TLS {tls})")
    print()

    try:
        stats = asyncio.run(run_stream(config))
    except KeyboardInterrupt:
        print("\nStream interrupted")
        sys.exit(0)
    except SubmissionError as e:
        logger.error("error while sending message: %s", e)
        if e.close_error is not None:
            logger.error("error terminating stream: %s", e.close_error)
        sys.exit(1)
    except BehemothError as e:
        logger.error("%s", e)
        sys.exit(1)

    if stats.cancelled:
        logger.info("Stream terminated by interrupt")
    print()
    print(f"Sent {stats.messages_sent} messages in {stats.elapsed_seconds:.2f}s")
    print(f"   Effective rate: {stats.effective_rate:.1f} Hz (target {config.frequency} Hz)")


def cmd_channels(args: argparse.Namespace):
    """Show the channel matrix and flow name for a configuration."""
    try:
        config = resolve_config(
            args.config,
            **_overrides(args, "num_components", "channels_per_component", "frequency"),
            console=True,
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    flow_config = build_flow_config(config)
    channels = flow_config.channels
    print(f"Flow: {flow_config.name}")
    print(f"Channels ({len(channels)}):")
    for channel in channels[:_MAX_CHANNELS_SHOWN]:
        print(f"  - {channel.name} [{channel.data_type.value}]")
    if len(channels) > _MAX_CHANNELS_SHOWN:
        print(f"  ... {len(channels) - _MAX_CHANNELS_SHOWN} more")


def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    configure_logging(args.log_level)

    if args.command == "stream":
        cmd_stream(args)
    elif args.command == "channels":
        cmd_channels(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
