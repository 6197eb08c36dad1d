#!/usr/bin/env python3
"""
Banque Rupt Entry Point

Builds the banking system from configuration and serves the API.
"""

import sys

import uvicorn

from banque_rupt.api import create_app
from banque_rupt.config import get_config
from banque_rupt.logging_config import setup_logging
from banque_rupt.system import BankingSystem


def main() -> int:
    config = get_config()
    logger = setup_logging(config.log_level)

    system = BankingSystem.from_config(config)
    try:
        system.seed_admin()
        logger.info(f"Starting Banque Rupt API on {config.api_host}:{config.api_port}")
        uvicorn.run(
            create_app(system),
            host=config.api_host,
            port=config.api_port,
            log_level=config.log_level.lower()
        )
    except KeyboardInterrupt:
        logger.info("Shutting down Banque Rupt")
    finally:
        system.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
