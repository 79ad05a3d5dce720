"""
Lead Enrichment & Scoring Engine - Main Entry Point
===================================================
Run this file to start the FastAPI server.

Usage:
    python main.py                    # Start server on port 8000
    python main.py --port 8080        # Start server on custom port
    python main.py --reload           # Start with auto-reload (dev mode)

API Documentation:
    http://localhost:8000/docs        # Swagger UI
    http://localhost:8000/redoc       # ReDoc
"""

import argparse
import sys

import uvicorn
from dotenv import load_dotenv
from loguru import logger

# Load environment variables
load_dotenv()

from lead_engine.config.settings import APP_CONFIG


def configure_logging(level: str, log_file: str = ""):
    """Route loguru output to stderr and, optionally, a rotating file"""
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_file:
        logger.add(log_file, rotation="1 day", retention="7 days", level=level)


def main():
    parser = argparse.ArgumentParser(description="Lead Enrichment & Scoring API Server")
    parser.add_argument(
        "--host",
        type=str,
        default=APP_CONFIG["host"],
        help=f"Host to bind the server to (default: {APP_CONFIG['host']})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=APP_CONFIG["port"],
        help=f"Port to run the server on (default: {APP_CONFIG['port']})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (default: 1)",
    )

    args = parser.parse_args()

    configure_logging(APP_CONFIG["log_level"], APP_CONFIG["log_file"])
    logger.info(
        f"Starting Lead Enrichment & Scoring Engine on http://{args.host}:{args.port} "
        f"(enrichment provider: {APP_CONFIG['enrichment_provider']})"
    )

    uvicorn.run(
        "lead_engine.api.endpoints:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level=APP_CONFIG["log_level"].lower(),
    )


if __name__ == "__main__":
    main()
