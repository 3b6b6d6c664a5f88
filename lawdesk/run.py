#!/usr/bin/env python3
"""
Quick runner for LawDesk API
============================

Usage:
    lawdesk
    # or
    python -m lawdesk.run

HOST, PORT and RELOAD environment variables override the defaults.
"""

import os

import uvicorn


def main():
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    reload = os.environ.get("RELOAD", "false").lower() in ("true", "1", "yes")

    print("Starting LawDesk API...")
    print(f"API docs: http://localhost:{port}/docs")
    print(f"Health:   http://localhost:{port}/health")
    print()

    uvicorn.run(
        "lawdesk.api:app",
        host=host,
        port=port,
        reload=reload
    )


if __name__ == "__main__":
    main()
