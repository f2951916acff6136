# This project was developed with assistance from AI tools.
"""Development server launcher: ``python -m gervis [--port 8000] [--reload]``."""

import argparse

import uvicorn

from .core.config import settings


def main():
    parser = argparse.ArgumentParser(description="Gervis onboarding & signature API")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload for development")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers (default: 1)")
    args = parser.parse_args()

    uvicorn.run(
        "gervis.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
