import logging
from unittest.mock import patch

from app.core.logging import LOG_FORMAT, setup_logging


def test_setup_logging_uses_configured_format() -> None:
    with patch("app.core.logging.logging.basicConfig") as basic_config:
        setup_logging("debug")

    basic_config.assert_called_once_with(level="DEBUG", format=LOG_FORMAT)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
