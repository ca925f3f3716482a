#!/usr/bin/env python3
"""
SessionAuth -- email/password accounts with server-side sessions.

Usage:
  python main.py init-db
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py purge-sessions

Environment variables (see core/config.py for the full list):
  DATABASE_URL    SQLAlchemy URL. Defaults to a SQLite file next to this script.
  SECRET_KEY      Signs session cookies. Required unless DEBUG=true.
  PORT            Port for `serve` (default 3000).
"""

import argparse
import sys

from api.main import build_service, provision_schema
from core.config import get_settings
from core.database import Database
from core.errors import UnavailableError


def _init_db(args: argparse.Namespace) -> int:
    """Provision the schema. Run before the first `serve` when AUTO_PROVISION=false."""
    db = Database(get_settings().database_url)
    try:
        provision_schema(build_service(db))
    except UnavailableError:
        print("  [!] Database unreachable. Check DATABASE_URL.", file=sys.stderr)
        return 1
    finally:
        db.close()
    print("Schema ready.")
    return 0


def _purge_sessions(args: argparse.Namespace) -> int:
    """Delete expired session rows once and report how many were removed."""
    db = Database(get_settings().database_url)
    try:
        removed = build_service(db).sessions.purge_expired()
    except UnavailableError:
        print("  [!] Database unreachable. Check DATABASE_URL.", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"{removed} expired session(s) removed.")
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="sessionauth",
        description="Email/password accounts with server-side sessions.",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_db = sub.add_parser("init-db", help="Create the users and sessions tables if missing")
    init_db.set_defaults(func=_init_db)

    serve = sub.add_parser("serve", help="Run the HTTP server with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT or 3000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_serve)

    purge = sub.add_parser("purge-sessions", help="Delete expired sessions once")
    purge.set_defaults(func=_purge_sessions)

    args = parser.parse_args()
    if not getattr(args, "func", None):
        parser.print_help()
        return
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
