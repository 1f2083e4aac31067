#!/usr/bin/env python3
"""
KV-Dict Server Entry Point

This is the main entry point for starting the KV-Dict server.

Usage:
    python -m kvdict.server                          # Default settings (0.0.0.0:27000)
    python -m kvdict.server --port 8080              # Custom port
    python -m kvdict.server --data-file /var/kv.json # Custom snapshot location
    python -m kvdict.server --debug                  # Enable debug logging

Environment Variables:
    KVDICT_HOST              - Server bind address
    KVDICT_PORT              - Server port
    KVDICT_DATA_FILE         - Snapshot file path
    KVDICT_SNAPSHOT_INTERVAL - Seconds between snapshots
    KVDICT_READ_TIMEOUT      - Seconds to wait for a request line (0 = no limit)
    KVDICT_LENIENT_PARSING   - Treat malformed arguments as empty key/value (true/false)
    KVDICT_DEBUG             - Enable debug mode (true/false)
"""

import argparse
import asyncio
import logging
import signal
import sys

from .config.settings import settings
from .network.tcp_server import KVServer
from .protocol.parser import ProtocolParser
from .storage.scheduler import SnapshotScheduler
from .storage.snapshot import SnapshotError, SnapshotFile
from .storage.store import MultiValueStore


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="KV-Dict: Multi-Valued Key-Value Store Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--data-file",
        type=str,
        default=settings.DATA_FILE,
        help="Path of the snapshot file",
    )

    parser.add_argument(
        "--snapshot-interval",
        type=float,
        default=settings.SNAPSHOT_INTERVAL,
        help="Seconds between periodic snapshots",
    )

    parser.add_argument(
        "--read-timeout",
        type=float,
        default=settings.READ_TIMEOUT,
        help="Seconds to wait for a request line (0 disables)",
    )

    parser.add_argument(
        "--lenient",
        action="store_true",
        default=settings.LENIENT_PARSING,
        help="Run malformed GET/PUT/DELETE against the empty key instead of rejecting them",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def load_store(snapshot: SnapshotFile) -> MultiValueStore:
    """
    Build the store from the snapshot file, creating the file if needed.

    Raises:
        SnapshotError: If the existing snapshot is corrupt
        OSError: If the snapshot cannot be read or created
    """
    store = MultiValueStore()
    store.load(snapshot.load_or_initialize())
    return store


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    logger.info("KV-Dict server starting up...")

    snapshot = SnapshotFile(args.data_file)
    try:
        store = load_store(snapshot)
    except (SnapshotError, OSError) as e:
        logger.critical(f"Couldn't load data file {args.data_file}: {e}")
        sys.exit(1)

    logger.info(f"Loaded {store.size()} keys from {args.data_file}")

    server = KVServer(
        host=args.host,
        port=args.port,
        store=store,
        parser=ProtocolParser(lenient=args.lenient),
        read_timeout=args.read_timeout,
    )
    scheduler = SnapshotScheduler(store, snapshot, interval=args.snapshot_interval)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    async def run() -> None:
        scheduler.start()
        try:
            await server.start()
        finally:
            await scheduler.stop()

    # Log startup info
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Data file: {args.data_file}")
    logger.info(f"  Snapshot interval: {args.snapshot_interval}s")
    logger.info(f"  Read timeout: {args.read_timeout}s")
    logger.info(f"  Lenient parsing: {args.lenient}")

    exit_code = 0
    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
        loop.run_until_complete(scheduler.stop())
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        try:
            loop.run_until_complete(scheduler.save())
        except OSError as e:
            logger.critical(f"Couldn't write final snapshot to {args.data_file}: {e}")
            exit_code = 1
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
