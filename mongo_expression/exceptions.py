"""
Exception classes for the Mongo expression builder.
"""


class ExpressionError(Exception):
    """Base exception for all expression builder errors."""
    pass


class MalformedArgumentError(ExpressionError):
    """Raised when an argument of the wrong shape is passed to the builder."""

    def __init__(self, message: str, argument=None):
        super().__init__(message)
        self.argument = argument
