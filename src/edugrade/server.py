#!/usr/bin/env python3
"""
EduGrade - API server launcher
Starts the FastAPI app with uvicorn using host and port from settings
"""

import argparse

import uvicorn

from edugrade.core.services.logging import get_logging_service
from edugrade.core.services.settings_config_service import get_settings_service


def parse_args(argv=None):
    settings = get_settings_service()
    parser = argparse.ArgumentParser(description="Run the EduGrade API server")
    parser.add_argument("--host", default=settings.get("server", "host", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=settings.getint("server", "port", 8000))
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    # Install the structlog handlers before uvicorn starts logging
    get_logging_service()
    print(f"Starting EduGrade on http://{args.host}:{args.port}")

    uvicorn.run(
        "edugrade.api.main:app",
        host=args.host,
        port=args.port,
        log_level="info",
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
