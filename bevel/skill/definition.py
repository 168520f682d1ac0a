"""
Skill definition.

A skill is an immutable, named group of operations. Skill authors build
them with define_skill(); agents bind them with Bevel.use().

Usage:
    from bevel.skill import define_skill, operation

    @operation("Show the working tree status", tags=["vcs"], default_permission="allow")
    async def status() -> str:
        ...

    git = define_skill(
        name="git",
        description="Git operations",
        operations={"status": status},
    )
"""

from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bevel.permission.resolver import Permission
from bevel.skill.exceptions import SkillDefinitionError


def _check_name(value: str, kind: str) -> str:
    if not value:
        raise ValueError(f"{kind} must not be empty")
    if "." in value:
        raise ValueError(f"{kind} '{value}' must not contain '.'")
    return value


class Operation(BaseModel):
    """
    A single named operation of a skill.

    The handler may be a coroutine function or a plain callable; its
    arguments, return value and errors are opaque to the framework.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str = Field(min_length=1)
    handler: Callable[..., Any]
    signature: str | None = None  # Documentation only
    tags: tuple[str, ...] = ()
    default_permission: Permission | None = None  # None inherits the global default


class Skill(BaseModel):
    """An immutable group of operations under a single name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    description: str
    operations: Mapping[str, Operation]

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _check_name(value, "Skill name")

    @field_validator("operations")
    @classmethod
    def _validate_operation_names(
        cls, value: Mapping[str, Operation]
    ) -> Mapping[str, Operation]:
        for op_name in value:
            _check_name(op_name, "Operation name")
        # Read-only view; a registered skill cannot grow operations later
        return MappingProxyType(dict(value))

    def qualified_name(self, op_name: str) -> str:
        return f"{self.name}.{op_name}"


def define_skill(
    name: str,
    description: str,
    operations: Mapping[str, Operation | Mapping[str, Any]],
) -> Skill:
    """
    Create a skill from its name, description and operations.

    Operations may be given as Operation instances or as plain mappings
    with the same fields.

    Raises:
        SkillDefinitionError: If a name, description or handler is invalid
    """
    try:
        return Skill(name=name, description=description, operations=dict(operations))
    except ValidationError as e:
        raise SkillDefinitionError(f"Invalid skill '{name}': {e}") from e


def operation(
    description: str | None = None,
    *,
    signature: str | None = None,
    tags: Sequence[str] | None = None,
    default_permission: Permission | None = None,
) -> Callable[[Callable[..., Any]], Operation]:
    """
    Decorator turning a function into an Operation.

    The description defaults to the first line of the function's docstring.
    """

    def decorator(func: Callable[..., Any]) -> Operation:
        desc = description
        if desc is None and func.__doc__:
            desc = func.__doc__.strip().splitlines()[0]
        try:
            return Operation(
                description=desc or "",
                handler=func,
                signature=signature,
                tags=tuple(tags or ()),
                default_permission=default_permission,
            )
        except ValidationError as e:
            raise SkillDefinitionError(
                f"Invalid operation '{func.__name__}': {e}"
            ) from e

    return decorator


__all__ = ["Operation", "Skill", "define_skill", "operation"]
