"""Test configuration for pytest."""

import logging
import os
import pytest


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    # Set environment variable to ensure minimal logging during tests
    os.environ['TESSERA_LOG_LEVEL'] = 'WARNING'

    # Also configure root logger to be quiet
    logging.getLogger().setLevel(logging.WARNING)

    # Loggers created at import time already have their level; quiet them too
    for logger_name in list(logging.root.manager.loggerDict):
        if logger_name.startswith('tessera'):
            logging.getLogger(logger_name).setLevel(logging.ERROR)
