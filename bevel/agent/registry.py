"""
Registry entries and skill namespaces.

Each registered skill gets a SkillNamespace holding one bound, permission
checked callable per operation, reachable as attributes or items:

    await agent.git.status()
    await agent["git"]["status"]()
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator

from bevel.skill.definition import Operation, Skill

BoundOperation = Callable[..., Awaitable[Any]]
Dispatcher = Callable[
    [str, Operation, tuple[Any, ...], dict[str, Any]], Awaitable[Any]
]


def bind_operation(
    qualified_name: str, op: Operation, dispatch: Dispatcher
) -> BoundOperation:
    """
    Wrap an operation's handler so every call goes through `dispatch`.

    Only the handler's name is carried over and the docstring is the
    operation description. The raw handler is not reachable from the bound
    callable (no __wrapped__), so inspect.unwrap() cannot skip the
    permission check.
    """

    async def bound(*args: Any, **kwargs: Any) -> Any:
        return await dispatch(qualified_name, op, args, kwargs)

    bound.__name__ = getattr(op.handler, "__name__", bound.__name__)
    bound.__qualname__ = getattr(op.handler, "__qualname__", bound.__qualname__)
    bound.__doc__ = op.description
    bound.qualified_name = qualified_name
    return bound


class SkillNamespace:
    """Bound operations of a single registered skill."""

    def __init__(self, skill: Skill, operations: dict[str, BoundOperation]) -> None:
        self._skill = skill
        self._operations = operations

    def __getattr__(self, name: str) -> BoundOperation:
        operations = self.__dict__.get("_operations", {})
        try:
            return operations[name]
        except KeyError:
            raise AttributeError(
                f"Skill '{self._skill.name}' has no operation '{name}'"
            ) from None

    def __getitem__(self, name: str) -> BoundOperation:
        return self._operations[name]

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[str]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._operations))

    def __repr__(self) -> str:
        return f"SkillNamespace({self._skill.name!r}, operations={list(self._operations)})"


@dataclass
class RegistryEntry:
    """A registered skill and its bound namespace."""

    skill: Skill
    namespace: SkillNamespace


__all__ = ["BoundOperation", "RegistryEntry", "SkillNamespace", "bind_operation"]
