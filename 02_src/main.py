"""Main entry point for Songline."""

import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from songline.api import create_fastapi_app
from songline.app import Application
from songline.config import Settings
from songline.errors import ConfigurationError
from songline.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error("%s", e.message)
        sys.exit(1)

    api_host = os.getenv("API_HOST", "0.0.0.0")
    api_port = int(os.getenv("API_PORT", os.getenv("PORT", "3000")))

    app = create_fastapi_app(Application(settings=settings))

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
