#!/usr/bin/env python3
"""
Main entry point for chanbot
"""

import asyncio
import logging
import os
import sys

from .bot.core import IRCBot
from .config.store import ConfigStore
from .constants import CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE
from .errors import MissingConfiguration, TransportFault
from .errors.handling import log_error

# Logging is set up once, at import of the entry point
from .logging_config import LoggerConfigurator
from .logs.logger import logger

configurator = LoggerConfigurator()
configurator.configure()


async def main() -> None:
    """Load the configuration, then run the bot until it disconnects.

    Raises:
        SystemExit: If the configuration is missing or invalid, or the
            server cannot be reached.
    """
    config_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
    try:
        store = ConfigStore(config_file)
        config = store.load()
        logger.log_event(
            "app", "start", path=config_file, server=config.host, port=config.port
        )
        bot = IRCBot(store)
        reason = await bot.run()
        logger.log_event("app", "shutdown", reason=reason or "none")
    except asyncio.CancelledError:
        raise
    except MissingConfiguration as e:
        log_error("Configuration error", e)
        sys.exit(1)
    except TransportFault as e:
        log_error("Connection failed", e)
        sys.exit(1)
    finally:
        logging.info("✅ Application shutdown complete")


def run() -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: If a critical error occurs during execution.
    """
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
    except asyncio.CancelledError:
        sys.exit(0)
    except Exception as e:
        log_error("Top-level error", e)
        sys.exit(1)


if __name__ == "__main__":
    run()
