"""
Main CLI entry point for csak.
"""

import logging
import sys

from csak.cli.enhanced_cli import main as enhanced_main

# Configure module logger
logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point"""
    logger.debug("Using enhanced CLI mode")
    return enhanced_main()


if __name__ == "__main__":
    sys.exit(main() or 0)
