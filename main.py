#!/usr/bin/env python3
"""
AdminDesk -- operator console backend: admin auth and user-directory browsing.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py import-users users.csv
  python main.py import-users export.json
  python main.py import-users dump.txt --format csv

Environment variables:
  SECRET_KEY        Token signing key (>= 32 chars). Required unless DEBUG=true.
  DIRECTORY_DB_URL  SQLAlchemy URL of the user directory database.
  ADMIN_DB_URL      SQLAlchemy URL of the admin account database.
"""

import argparse
from pathlib import Path
from typing import Optional

from directory.ingest import parse_csv, parse_json
from directory.models import User
from directory.store import UserDirectoryStore

_PARSERS = {
    "csv": parse_csv,
    "json": parse_json,
}


def _detect_format(path: Path, explicit: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit
    suffix = path.suffix.lower().lstrip(".")
    return suffix if suffix in _PARSERS else None


def _load_users(path: str, fmt: Optional[str]) -> Optional[list[User]]:
    """Read and parse a user export file. Returns None (after printing why) on failure.

    Resolves symlinks and verifies the path is a regular file before reading.
    """
    file_path = Path(path).resolve()
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.")
        return None

    resolved_fmt = _detect_format(file_path, fmt)
    if resolved_fmt is None:
        print(f"  [!] Cannot detect format of '{path}'. Use --format csv or --format json.")
        return None

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"  [!] Could not read file '{path}': {e}")
        return None

    try:
        return _PARSERS[resolved_fmt](content)
    except ValueError as e:
        print(f"  [!] Could not parse '{path}': {e}")
        return None


def import_users(path: str, fmt: Optional[str] = None, store: Optional[UserDirectoryStore] = None) -> int:
    """Import users from a CSV or JSON export. Returns the number of records created."""
    users = _load_users(path, fmt)
    if users is None:
        return 0

    owns_store = store is None
    if store is None:
        from core.config import get_settings

        store = UserDirectoryStore(get_settings().directory_db_url)
    try:
        for user in users:
            store.create_user(user)
        total = store.count_users()
    finally:
        if owns_store:
            store.close()

    print(f"  Imported {len(users)} user(s). Directory now holds {total}.")
    return len(users)


def serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("asgi:app", host=host, port=port, reload=reload)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="admindesk",
        description="Admin console backend: authentication and user-directory browsing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py import-users users.csv
  SECRET_KEY=... python main.py serve --host 0.0.0.0
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_p.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_p.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve_p.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    import_p = sub.add_parser("import-users", help="Load user profiles from a CSV or JSON export")
    import_p.add_argument("path", metavar="PATH", help="File to import")
    import_p.add_argument(
        "--format",
        choices=sorted(_PARSERS),
        default=None,
        metavar="FORMAT",
        help="csv or json (default: detected from the file extension)",
    )

    args = parser.parse_args()

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
    elif args.command == "import-users":
        import_users(args.path, args.format)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
