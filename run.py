#!/usr/bin/env python3
"""
Launcher for the AION workflow engine.

Usage:
    python run.py

Environment:
    HOST, PORT    bind address (default 0.0.0.0:8000)
    RELOAD        "false" to disable auto-reload
"""

import uvicorn
import os


def main():
    """Serve aion.main:app with uvicorn."""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "true").lower() == "true"

    base_url = f"http://{host}:{port}"
    lines = [
        "AION workflow engine",
        "",
        f"Server:        {base_url}",
        f"API Docs:      {base_url}/docs",
        f"Integrations:  {base_url}/integrations",
    ]
    width = max(len(line) for line in lines) + 4
    print("+" + "-" * width + "+")
    for line in lines:
        print("|  " + line.ljust(width - 2) + "|")
    print("+" + "-" * width + "+")

    uvicorn.run(
        "aion.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
