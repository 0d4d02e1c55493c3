"""
Pytest configuration for OXM tests.
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from loguru import logger

# Add repository root to path for imports (allow 'oxm' package import)
repo_root = Path(__file__).resolve().parent.parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from oxm import constants  # noqa: E402


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture
def clean_env():
    """Strip OXM_* variables and undo anything dotenv loads during the test."""
    with patch.dict(os.environ):
        for var in (constants.ENV_LOG_LEVEL, constants.ENV_LOG_FILE, constants.ENV_PARALLEL_DISPATCH):
            os.environ.pop(var, None)
        yield


@pytest.fixture
def restore_logging():
    """Reset loguru to its default stderr sink after a test reconfigures it."""
    yield
    logger.remove()
    logger.configure(extra={})
    logger.add(sys.stderr)
