#!/usr/bin/env python3
"""
User Accounts API -- registration, login and an authenticated user listing.

Usage:
  python main.py
  python main.py --port 3000
  python main.py --host 127.0.0.1 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Token signing secret, at least 32 characters. JWT_SECRET is
                 accepted as an alias. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy database URL. Defaults to a local SQLite file.
  DEBUG          Development mode; auto-generates SECRET_KEY when unset.
"""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the User Accounts API server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on (default: 3000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    print(f"  API base URL:  http://localhost:{args.port}")
    print(f"  Documentation: http://localhost:{args.port}/docs")
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
