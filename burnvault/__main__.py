"""BurnVault command line.

    python -m burnvault serve [--host HOST] [--port PORT]
    python -m burnvault genkey
    python -m burnvault sweep
"""
import sys
import asyncio
import argparse
import logging

from aiohttp import web

from .config import StoreConfig, generate_master_key
from .exceptions import BurnVaultError
from .store import SecretStore
from .version import __version__
from .web import create_app

logger = logging.getLogger("burnvault")


def cmd_serve(args) -> int:
    config = StoreConfig.from_env()
    web.run_app(create_app(config), host=args.host, port=args.port)
    return 0


def cmd_genkey(args) -> int:
    """Print a fresh base64 master key for BURNVAULT_MASTER_KEY."""
    print(generate_master_key())
    return 0


async def _sweep(config: StoreConfig) -> int:
    store = SecretStore.from_config(config)
    async with store.backend:
        return await store.sweep()


def cmd_sweep(args) -> int:
    """Run one expiry sweep, for cron-style scheduling."""
    config = StoreConfig.from_env()
    deleted = asyncio.run(_sweep(config))
    print(f"Removed {deleted} expired secret(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="burnvault",
        description="Self-destructing encrypted secrets.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)
    serve.set_defaults(func=cmd_serve)

    genkey = subparsers.add_parser("genkey", help="Generate a master key")
    genkey.set_defaults(func=cmd_genkey)

    sweep = subparsers.add_parser("sweep", help="Delete expired secrets once")
    sweep.set_defaults(func=cmd_sweep)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args)
    except (BurnVaultError, RuntimeError, ValueError) as err:
        logger.error("%s", err)
        return 1


if __name__ == "__main__":
    sys.exit(main())
