from __future__ import annotations
import logging
from package_stats.domain.exceptions import ConfigurationError
from package_stats.infrastructure.config import get_settings
from package_stats.interface.cli import app


def _log_level() -> str:
    try:
        return get_settings().log_level.upper()
    except ConfigurationError:
        # reported by the command itself
        return "INFO"


def main() -> None:
    """Configure logging and run the command line."""
    logging.basicConfig(
        level=_log_level(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
