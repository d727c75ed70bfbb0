"""
Configuration helpers for the Mongo expression builder.
Supports environment variables so defaults can be changed per deployment.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

ARRAY_CHECK_WHERE = "where"
ARRAY_CHECK_TYPE = "type"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """
    Builder defaults.

    Environment variables:
        MONGO_EXPRESSION_LOG_LEVEL: Level for the package logger (default: WARNING)
        MONGO_EXPRESSION_CASE_INSENSITIVE: Default for where_like (default: true)
        MONGO_EXPRESSION_ARRAY_CHECK: "where" to test arrays with a JavaScript
            $where condition, "type" to use {$type: "array"} (default: where)
    """
    log_level: str = "WARNING"
    case_insensitive: bool = True
    array_check: str = ARRAY_CHECK_WHERE

    def __post_init__(self):
        if self.array_check not in (ARRAY_CHECK_WHERE, ARRAY_CHECK_TYPE):
            raise ValueError(
                f"array_check must be '{ARRAY_CHECK_WHERE}' or '{ARRAY_CHECK_TYPE}', "
                f"got {self.array_check!r}"
            )

    @staticmethod
    def from_env() -> "Config":
        """
        Create configuration from environment variables.

        Example:
            from mongo_expression import Expression
            from mongo_expression.config import Config

            expression = Expression(config=Config.from_env())
        """
        return Config(
            log_level=os.getenv("MONGO_EXPRESSION_LOG_LEVEL", "WARNING").upper(),
            case_insensitive=os.getenv(
                "MONGO_EXPRESSION_CASE_INSENSITIVE", "true"
            ).lower() in _TRUTHY,
            array_check=os.getenv(
                "MONGO_EXPRESSION_ARRAY_CHECK", ARRAY_CHECK_WHERE
            ).lower(),
        )


def configure_logging(config: Optional[Config] = None) -> logging.Logger:
    """
    Apply the configured level to the package logger.

    Args:
        config: Configuration to apply (default: Config.from_env())

    Returns:
        The package logger
    """
    config = config or Config.from_env()
    logger = logging.getLogger("mongo_expression")
    logger.setLevel(config.log_level)
    return logger
