"""
Skills - named, immutable groups of operations.
"""

from bevel.skill.definition import Operation, Skill, define_skill, operation
from bevel.skill.exceptions import SkillDefinitionError, SkillError

__all__ = [
    "Operation",
    "Skill",
    "SkillDefinitionError",
    "SkillError",
    "define_skill",
    "operation",
]
