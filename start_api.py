#!/usr/bin/env python3
"""
Run the SerpApi events proxy under uvicorn.

Usage:
    python start_api.py                 # listen on $PORT (default 3001)
    python start_api.py --reload        # restart on code changes
    python start_api.py --workers 4     # several worker processes
"""

import argparse
import os

import uvicorn

APP = "api.main:app"
WATCHED_PACKAGES = ["api", "ingest"]


def main():
    """Parse launcher options and start uvicorn."""
    parser = argparse.ArgumentParser(description="Run the SerpApi events proxy")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "3001")),
        help="Port to bind to (default: $PORT or 3001)",
    )
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart when files under api/ or ingest/ change (single worker)",
    )
    args = parser.parse_args()

    options = {"host": args.host, "port": args.port, "log_level": "info"}
    if args.reload:
        options.update(reload=True, reload_dirs=WATCHED_PACKAGES)
    else:
        options["workers"] = args.workers

    print(f"SerpApi events proxy listening on http://{args.host}:{args.port}")
    uvicorn.run(APP, **options)


if __name__ == "__main__":
    main()
