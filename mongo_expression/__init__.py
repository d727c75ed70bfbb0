"""
Mongo Expression
Fluent builder for MongoDB query documents.

Example usage:
    from mongo_expression import Expression

    query = (Expression()
        .where_in("status", ["active", "pending"])
        .where_greater_or_equal("priority", 5)
        .where_not(Expression().where("archived", True)))

    collection.find(query.to_dict())
"""

import logging

from .expression import Expression, merge_values
from .operators import QueryOperator
from .field_types import FieldType
from .geometry import Point, LineString, Polygon, to_geometry
from .exceptions import ExpressionError, MalformedArgumentError
from .config import Config, configure_logging

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Builder
    "Expression",
    "merge_values",

    # Constants
    "QueryOperator",
    "FieldType",

    # Geometry
    "Point",
    "LineString",
    "Polygon",
    "to_geometry",

    # Configuration
    "Config",
    "configure_logging",

    # Errors
    "ExpressionError",
    "MalformedArgumentError",
]
