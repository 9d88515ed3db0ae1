"""Chatroom CLI — run the server, peek at the room.

Usage:
    chatroom serve                       # Run the server (host/port from env)
    chatroom serve --port 4000 --reload  # Override port, auto-reload on change
    chatroom status                      # Health + who is in the room
    chatroom status --url http://chat.example.com
"""

from __future__ import annotations

import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url(url: Optional[str] = None) -> str:
    return (url or os.environ.get("CHATROOM_API_URL", DEFAULT_API_URL)).rstrip("/")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="chatroom")
def main():
    """Chatroom — single-room real-time group chat server."""


# ---------------------------------------------------------------------------
# chatroom serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: CHATROOM_HOST or 0.0.0.0)")
@click.option("--port", "-p", type=int, default=None, help="Listen port (default: CHATROOM_PORT / PORT or 3000)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (development)")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the chat server with uvicorn."""
    import uvicorn

    from chatroom.config import settings
    from chatroom.logging_config import configure_logging

    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        "chatroom.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# chatroom status
# ---------------------------------------------------------------------------


@main.command()
@click.option("--url", default=None, help="Server base URL (or set CHATROOM_API_URL)")
def status(url: Optional[str]):
    """Show server health and the participants currently in the room."""
    base = _api_url(url)
    try:
        with httpx.Client(base_url=base, timeout=10.0) as c:
            health = c.get("/api/v1/health")
            health.raise_for_status()
            room = c.get("/api/v1/room")
            room.raise_for_status()
    except httpx.HTTPError as e:
        click.secho(f"Error: cannot reach chat server at {base}: {e}", fg="red", err=True)
        sys.exit(1)

    h = health.json()
    r = room.json()
    color = "green" if h["status"] == "healthy" else "yellow"
    click.secho(f"Server {base}: {h['status']} (v{h['version']})", fg=color)
    click.echo(f"Connections: {r['connections']}  Registered: {len(r['participants'])}")

    if not r["participants"]:
        click.echo("No one has joined yet.")
        return

    click.echo()
    rows = [
        {**p, "typing": "typing..." if p["typing"] else ""}
        for p in r["participants"]
    ]
    _print_table(rows, [
        ("USERNAME", "username", 24),
        ("TRANSPORT", "transport", 10),
        ("CONNECTED", "connected_at", 26),
        ("", "typing", 10),
    ])


if __name__ == "__main__":
    main()
