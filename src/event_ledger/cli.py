"""
Command-line interface for the event ledger.

Provides CLI commands for server management:
- init-db: Initialize the database schema
- run: Start the API server
- smoke: Run end-to-end checks against a running server

Usage:
    event-ledger init-db
    event-ledger run [--host HOST] [--port PORT]
    event-ledger smoke [--url URL] [--api-key KEY]

Environment Variables:
    LEDGER_HOST: Host to bind the API server (default: 0.0.0.0)
    LEDGER_PORT: Port for the API server (default: 8787)
    LEDGER_API_KEY: Shared secret required by the API (and sent by ``smoke``)
"""

import argparse
import sys
import uuid
from collections.abc import Callable

import httpx


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the database schema.

    Returns:
        0 on success, 1 on error
    """
    from event_ledger.db.schema import init_database

    try:
        init_database()
        print("Database initialized successfully.")
        return 0
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """
    Initialize the database if needed and start the API server.

    Returns:
        0 on clean shutdown, 1 on error
    """
    from event_ledger.api.server import start_server
    from event_ledger.config import print_config_summary
    from event_ledger.db.schema import init_database

    try:
        init_database()
    except Exception as e:
        print(f"Error initializing database: {e}", file=sys.stderr)
        return 1

    print_config_summary()
    try:
        start_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


# ============================================================================
# SMOKE CHECKS
# ============================================================================

SmokeCheck = Callable[[httpx.Client, dict], str | None]


def _check_create(client: httpx.Client, state: dict) -> str | None:
    event_id = state["event_id"]
    response = client.post(
        "/events",
        json={"id": event_id, "payload": {"type": "smoke.test", "source": "event-ledger smoke"}},
    )
    if response.status_code != 201:
        return f"expected 201, got {response.status_code}: {response.text}"
    if response.json().get("id") != event_id:
        return f"unexpected id in response: {response.text}"
    return None


def _check_fetch(client: httpx.Client, state: dict) -> str | None:
    response = client.get("/events", params={"id": state["event_id"]})
    if response.status_code != 200:
        return f"expected 200, got {response.status_code}: {response.text}"
    events = response.json().get("events", [])
    if len(events) != 1 or events[0].get("id") != state["event_id"]:
        return f"event not returned: {response.text}"
    return None


def _check_duplicate(client: httpx.Client, state: dict) -> str | None:
    response = client.post("/events", json={"id": state["event_id"], "payload": {}})
    if response.status_code != 409:
        return f"expected 409, got {response.status_code}: {response.text}"
    return None


def _check_deprecated(client: httpx.Client, state: dict) -> str | None:
    response = client.post("/jobs", json={})
    if response.status_code != 410:
        return f"expected 410, got {response.status_code}: {response.text}"
    return None


SMOKE_CHECKS: list[tuple[str, SmokeCheck]] = [
    ("create event", _check_create),
    ("fetch event by id", _check_fetch),
    ("duplicate id rejected", _check_duplicate),
    ("deprecated route gone", _check_deprecated),
]


def run_smoke_checks(client: httpx.Client, event_id: str | None = None) -> list[tuple[str, str | None]]:
    """
    Run every smoke check in order against ``client``.

    Returns:
        ``(name, failure)`` pairs; ``failure`` is None for a passing check.
    """
    state = {"event_id": event_id or f"smoke-{uuid.uuid4()}"}
    results = []
    for name, check in SMOKE_CHECKS:
        try:
            failure = check(client, state)
        except httpx.HTTPError as e:
            failure = f"request failed: {e}"
        results.append((name, failure))
    return results


def cmd_smoke(args: argparse.Namespace) -> int:
    """
    Run end-to-end checks against a running server.

    Returns:
        0 when every check passes, 1 otherwise
    """
    from event_ledger.config import config

    api_key = args.api_key or config.security.api_key
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}

    with httpx.Client(base_url=args.url, headers=headers, timeout=args.timeout) as client:
        results = run_smoke_checks(client)

    failed = 0
    for name, failure in results:
        if failure is None:
            print(f"PASS  {name}")
        else:
            failed += 1
            print(f"FAIL  {name}: {failure}")

    print(f"\n{len(results) - failed}/{len(results)} checks passed")
    return 0 if failed == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="event-ledger",
        description="Event Ledger - append-only event storage over HTTP",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-db command
    init_parser = subparsers.add_parser(
        "init-db",
        help="Initialize the database schema",
        description="Create the events table and its indexes if they do not exist.",
    )
    init_parser.set_defaults(func=cmd_init_db)

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run the API server",
        description="Initialize the database if needed and start the API server.",
    )
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="API server port (default: 8787, or LEDGER_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: 0.0.0.0, or LEDGER_HOST env var)",
    )
    run_parser.set_defaults(func=cmd_run)

    # smoke command
    smoke_parser = subparsers.add_parser(
        "smoke",
        help="Run end-to-end checks against a running server",
        description=(
            "Create an event, fetch it back, confirm a duplicate id is rejected "
            "and confirm the retired job routes answer 410."
        ),
    )
    smoke_parser.add_argument(
        "--url",
        default="http://127.0.0.1:8787",
        help="Base URL of the server (default: http://127.0.0.1:8787)",
    )
    smoke_parser.add_argument(
        "--api-key",
        help="API key to send (default: LEDGER_API_KEY / configured key)",
    )
    smoke_parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Per-request timeout in seconds",
    )
    smoke_parser.set_defaults(func=cmd_smoke)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
