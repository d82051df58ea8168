"""
Exception taxonomy for limetab.

Lookups that find nothing are not errors; they return None.
Everything else that can go wrong raises one of the classes below.
"""


class LimetabError(Exception):
    """Base class for all limetab errors."""
    pass


class ConfigurationError(LimetabError, ValueError):
    """Raised for unparsable access patterns or invalid options."""
    pass


class MalformedInputError(LimetabError, ValueError):
    """Raised when an export cannot be normalized."""
    pass


class PreconditionError(LimetabError):
    """Raised when an operation is called on an ineligible node."""
    pass


class ReadOnlyError(LimetabError, AttributeError):
    """Raised on any attempt to write to a survey tree node."""

    def __init__(self, name: str = ""):
        self.name = name
        super().__init__(f"Property '{name}' is read-only")
