"""
SalesOps Hub — Entry Point
============================

Builds the sales dashboard from the latest call/sale snapshot.

Run: python main.py [--range mtd] [--closer NAME] ...
"""

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger("salesops-hub")

if __name__ == "__main__":
    from scripts.dashboard_pipeline import DEFAULT_INPUT, DEFAULT_OUTPUT, main

    logger.info("=" * 60)
    logger.info("  SALESOPS HUB — Call & Sales Journey Dashboard")
    logger.info("=" * 60)
    logger.info(f"  Input       : {os.getenv('SALESOPS_RAW_FILE', str(DEFAULT_INPUT))}")
    logger.info(f"  Output      : {os.getenv('SALESOPS_OUTPUT_FILE', str(DEFAULT_OUTPUT))}")
    logger.info(f"  Log level   : {os.getenv('LOG_LEVEL', 'INFO')}")
    logger.info("=" * 60)

    sys.exit(main())
