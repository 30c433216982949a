#!/usr/bin/env python3
"""
MySQL Users Connector

Reads the connection settings from the environment (or a .env file),
connects to MySQL once, which also makes sure the users table exists,
and exits.
"""

import logging
import os

from src.database import ConnectionConfig, MySQLConnection

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Set up logging with the level taken from LOG_LEVEL."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


# ------------------------------------------------------------
# Startup
# ------------------------------------------------------------

def main() -> int:
    """Main entry point. Connection failures propagate and end the process."""
    configure_logging()

    config = ConnectionConfig.from_env()
    db = MySQLConnection(config)

    logger.info(f"Starting {db}")
    db.connect()
    db.disconnect()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
