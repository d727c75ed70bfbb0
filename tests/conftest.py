"""
Shared pytest fixtures for mongo_expression tests.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mongo_expression import Config, Expression

logging.basicConfig(level=logging.CRITICAL)


@pytest.fixture
def expression():
    """Provide an empty builder with default configuration."""
    return Expression()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove builder settings from the environment."""
    for name in (
        "MONGO_EXPRESSION_LOG_LEVEL",
        "MONGO_EXPRESSION_CASE_INSENSITIVE",
        "MONGO_EXPRESSION_ARRAY_CHECK",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def type_array_config():
    """Configuration using $type: "array" for array checks."""
    return Config(array_check="type")
