"""Application entry point for the quiz portal."""

from __future__ import annotations

from quiz_portal.config import PortalSettings
from quiz_portal.server.api_server import run_api_server
from quiz_portal.utils.logging_config import configure_logging


def main() -> None:
    """Load settings, initialize logging, and serve the student pages."""
    settings = PortalSettings()
    logger = configure_logging(settings.log_level)
    logger.info("Starting quiz portal on %s:%s", settings.host, settings.port)
    run_api_server(settings)


if __name__ == "__main__":
    main()
