"""Process-wide logging setup."""

import logging
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once per process."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    # Engine chatter is controlled by database_echo, not by the root level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
