"""
Skill-related exceptions.
"""

from bevel.exceptions import BevelError


class SkillError(BevelError):
    """Base exception for all skill-related errors."""

    pass


class SkillDefinitionError(SkillError):
    """Raised when a skill or one of its operations is malformed."""

    pass
