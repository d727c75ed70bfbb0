#!/usr/bin/env python3
"""
MongoDB query operator keywords emitted by the expression builder.
"""

from enum import Enum


class QueryOperator(str, Enum):
    """MongoDB query operators."""
    # Comparison
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"

    # Logical
    AND = "$and"
    OR = "$or"
    NOR = "$nor"
    NOT = "$not"

    # Element
    EXISTS = "$exists"
    TYPE = "$type"

    # Evaluation
    MOD = "$mod"
    REGEX = "$regex"
    OPTIONS = "$options"
    WHERE = "$where"

    # Array
    ALL = "$all"
    ELEM_MATCH = "$elemMatch"
    SIZE = "$size"

    # Geospatial
    NEAR = "$near"
    NEAR_SPHERE = "$nearSphere"
    GEO_INTERSECTS = "$geoIntersects"
    GEO_WITHIN = "$geoWithin"
    GEOMETRY = "$geometry"
    MIN_DISTANCE = "$minDistance"
    MAX_DISTANCE = "$maxDistance"
    CENTER = "$center"
    CENTER_SPHERE = "$centerSphere"
    BOX = "$box"
    POLYGON = "$polygon"

    @classmethod
    def is_operator_key(cls, key) -> bool:
        """Operator keys start with the reserved sigil, field paths never do."""
        return isinstance(key, str) and key.startswith("$")

    def __str__(self) -> str:
        return self.value
