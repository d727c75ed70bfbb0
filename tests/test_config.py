#!/usr/bin/env python3
"""
Tests for environment configuration and logging setup.
"""

import logging

import pytest

from mongo_expression import Config, QueryOperator, configure_logging
from mongo_expression.config import ARRAY_CHECK_TYPE, ARRAY_CHECK_WHERE


class TestConfig:
    """Test Config defaults and environment parsing."""

    def test_defaults(self, clean_env):
        config = Config.from_env()

        assert config == Config()
        assert config.log_level == "WARNING"
        assert config.case_insensitive is True
        assert config.array_check == ARRAY_CHECK_WHERE

    def test_from_env(self, clean_env):
        clean_env.setenv("MONGO_EXPRESSION_LOG_LEVEL", "debug")
        clean_env.setenv("MONGO_EXPRESSION_CASE_INSENSITIVE", "no")
        clean_env.setenv("MONGO_EXPRESSION_ARRAY_CHECK", "TYPE")

        config = Config.from_env()

        assert config.log_level == "DEBUG"
        assert config.case_insensitive is False
        assert config.array_check == ARRAY_CHECK_TYPE

    def test_invalid_array_check(self):
        with pytest.raises(ValueError):
            Config(array_check="js")

    def test_configure_logging(self):
        logger = configure_logging(Config(log_level="DEBUG"))

        assert logger.name == "mongo_expression"
        assert logger.level == logging.DEBUG
        logger.setLevel(logging.NOTSET)


class TestQueryOperator:
    """Test operator key detection."""

    def test_is_operator_key(self):
        assert QueryOperator.is_operator_key("$or")
        assert not QueryOperator.is_operator_key("user.name")
        assert not QueryOperator.is_operator_key(3)
