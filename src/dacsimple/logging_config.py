"""Logging setup for the API server, worker and scripts."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """Configure root logging once per process."""
    logging.basicConfig(
        level=logging.DEBUG if debug else level.upper(),
        format=LOG_FORMAT,
        force=True,
    )
    # psycopg pool logs every connection at INFO
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
