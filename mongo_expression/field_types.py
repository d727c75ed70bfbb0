#!/usr/bin/env python3
"""
BSON field type tags used by the $type operator.
"""

from enum import IntEnum


class FieldType(IntEnum):
    """BSON type numbers as understood by MongoDB's $type operator."""
    DOUBLE = 1
    STRING = 2
    OBJECT = 3
    ARRAY = 4
    BINARY_DATA = 5
    UNDEFINED = 6  # deprecated
    OBJECT_ID = 7
    BOOLEAN = 8
    DATE = 9
    NULL = 10
    REGULAR_EXPRESSION = 11
    JAVASCRIPT = 13
    SYMBOL = 14  # deprecated
    JAVASCRIPT_WITH_SCOPE = 15
    INT32 = 16
    TIMESTAMP = 17
    INT64 = 18
    DECIMAL128 = 19
    MIN_KEY = -1
    MAX_KEY = 127
