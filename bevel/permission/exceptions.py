"""
Permission-related exceptions.
"""

from bevel.exceptions import BevelError


class PermissionDeniedError(BevelError):
    """Raised instead of invoking a handler whose call was not permitted."""

    def __init__(self, qualified_name: str) -> None:
        self.qualified_name = qualified_name
        super().__init__(f"Permission denied: {qualified_name}")


class PolicyError(BevelError):
    """Raised when a permission policy or policy file is invalid."""

    pass
