# cli/cli.py
"""
Operator commands for the vehicle marketplace backend.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Callable, Dict, Optional

import aiohttp
import httpx

from marketplace_api.core.config import settings
from marketplace_api.core.logging import configure_structlog
from marketplace_api.services.auth import create_access_token
from marketplace_api.services.registry_client import RegistryLookupClient


# Output formatting utilities
def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    print(f"{RED}[✗]{RESET} {message}")


def print_info(message: str):
    print(f"{BLUE}[i]{RESET} {message}")


# Command functions
async def cmd_lookup(args: argparse.Namespace) -> int:
    """Command: Query the vehicle registry for one plate."""
    if not settings.registry_base_url:
        print_error("REGISTRY_BASE_URL is not configured")
        return 1

    print_info(f"Looking up {args.plate}...")
    async with aiohttp.ClientSession() as session:
        client = RegistryLookupClient(
            session,
            settings.registry_base_url,
            settings.registry_api_key,
            timeout=settings.registry_timeout_seconds,
        )
        record = await client.fetch(args.plate)

    if record is None:
        print_error("No registry details found")
        return 1

    print_success("Registry details found")
    print(json.dumps(record.model_dump(by_alias=True), indent=2))
    return 0


async def cmd_health(args: argparse.Namespace) -> int:
    """Command: Check a running API's health endpoint."""
    url = f"{args.url.rstrip('/')}{settings.api_prefix}/health"
    print_info(f"Checking {url}...")
    try:
        async with httpx.AsyncClient(timeout=args.timeout) as client:
            response = await client.get(url)
    except httpx.RequestError as e:
        print_error(f"API not accessible at {args.url}: {e}")
        return 1

    if response.status_code != 200:
        print_error(f"Health check failed with status {response.status_code}")
        return 1

    body = response.json()
    print_success(f"API healthy ({body.get('environment')})")
    print_info(f"  Enrichment tasks in flight: {body.get('enrichment_in_flight', 0)}")
    return 0


async def cmd_token(args: argparse.Namespace) -> int:
    """Command: Mint an admin bearer token."""
    print(create_access_token(args.subject, email=args.email, expires_in_minutes=args.minutes))
    return 0


# Command registry
COMMANDS: Dict[str, Callable] = {
    'lookup': cmd_lookup,
    'health': cmd_health,
    'token': cmd_token,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        description='Vehicle marketplace operator CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    lookup_parser = subparsers.add_parser('lookup', help='Look up a plate in the vehicle registry')
    lookup_parser.add_argument('plate', help='Registration number, spaces allowed')

    health_parser = subparsers.add_parser('health', help='Check API health')
    health_parser.add_argument('--url', default='http://localhost:8000', help='API base URL')
    health_parser.add_argument('--timeout', type=float, default=5.0, help='Request timeout in seconds')

    token_parser = subparsers.add_parser('token', help='Mint an admin bearer token')
    token_parser.add_argument('subject', help='Token subject, usually the admin user id')
    token_parser.add_argument('--email', default=None)
    token_parser.add_argument('--minutes', type=int, default=60)

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    configure_structlog()
    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
