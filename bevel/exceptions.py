"""
Bevel exceptions.

All errors raised by the framework itself derive from BevelError. Errors
raised by operation handlers or approval callbacks are never wrapped.
"""


class BevelError(Exception):
    """Base exception for all Bevel errors."""

    pass


class OperationNotFoundError(BevelError, LookupError):
    """Raised when dispatching to a qualified name that is not registered."""

    def __init__(self, qualified_name: str) -> None:
        self.qualified_name = qualified_name
        super().__init__(f"Operation not found: {qualified_name}")


__all__ = ["BevelError", "OperationNotFoundError"]
