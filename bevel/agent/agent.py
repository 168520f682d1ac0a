"""
Bevel - the agent handle that skills are registered into.

Usage:
    agent = (
        Bevel(permissions={"git.*": "allow"}, on_permission_request=approve)
        .use(git)
        .use(fs)
    )

    status = await agent.git.status()
    results = agent.search("commit")
"""

import inspect
from typing import Any, Awaitable, Callable, Sequence

import structlog

import bevel.config.settings as config_settings
from bevel.agent.registry import RegistryEntry, SkillNamespace, bind_operation
from bevel.agent.search import SearchResult, search
from bevel.config.settings import BevelSettings
from bevel.exceptions import OperationNotFoundError
from bevel.permission.exceptions import PermissionDeniedError, PolicyError
from bevel.permission.policy import load_policy, validate_policy
from bevel.permission.resolver import (
    PERMISSION_LEVELS,
    Permission,
    PermissionPolicy,
    resolve_permission,
)
from bevel.skill.definition import Operation, Skill
from bevel.utils.logging import get_logger

logger = get_logger(__name__)

ApprovalCallback = Callable[[str, Sequence[Any]], "bool | Awaitable[bool]"]


class Bevel:
    """
    Composes skills into an agent and gates every operation call.

    Each call resolves its permission against the live policy:
    - deny: PermissionDeniedError, the handler is never invoked
    - ask: the approval callback decides; no callback means denial
    - allow: the handler runs and its result or error is returned as is

    Registered skills are reachable as attributes (agent.git) unless the
    skill name collides with a Bevel method, and always as items
    (agent["git"]).
    """

    def __init__(
        self,
        permissions: PermissionPolicy | None = None,
        default_permission: Permission = "ask",
        on_permission_request: ApprovalCallback | None = None,
    ) -> None:
        """
        Args:
            permissions: Policy of exact ("git.push") or wildcard ("git.*")
                keys. The mapping is kept by reference, so later changes
                to it apply to subsequent calls and searches.
            default_permission: Level used when neither the policy nor the
                operation decides
            on_permission_request: Called as (qualified_name, args) for
                "ask" operations; may return a bool or an awaitable of one
        """
        if default_permission not in PERMISSION_LEVELS:
            raise PolicyError(f"Invalid default permission: {default_permission!r}")
        if permissions is None:
            permissions = {}
        else:
            validate_policy(permissions)

        self.permissions = permissions
        self._default_permission: Permission = default_permission
        self._on_permission_request = on_permission_request
        self._registry: dict[str, RegistryEntry] = {}

    @classmethod
    def from_settings(
        cls,
        settings: BevelSettings | None = None,
        on_permission_request: ApprovalCallback | None = None,
    ) -> "Bevel":
        """
        Build an agent from settings, the global `settings` by default.

        Policy entries from `permissions_file` are loaded first; entries from
        `permissions` override them.
        """
        if settings is None:
            settings = config_settings.settings

        policy: PermissionPolicy = {}
        if settings.permissions_file:
            policy.update(load_policy(settings.permissions_file))
        policy.update(settings.permissions)

        return cls(
            permissions=policy,
            default_permission=settings.default_permission,
            on_permission_request=on_permission_request,
        )

    @property
    def default_permission(self) -> Permission:
        return self._default_permission

    @property
    def skills(self) -> list[str]:
        """Registered skill names, in registration order."""
        return list(self._registry)

    def use(self, skill: Skill) -> "Bevel":
        """
        Register a skill and return this agent for chaining.

        Registering a skill name that is already present replaces the
        previous skill and its operations entirely.
        """
        if not isinstance(skill, Skill):
            raise TypeError(f"Expected a Skill, got {type(skill).__name__}")

        bound_ops = {
            op_name: bind_operation(skill.qualified_name(op_name), op, self._dispatch)
            for op_name, op in skill.operations.items()
        }

        if skill.name in self._registry:
            logger.info(
                "skill_replaced",
                skill=skill.name,
                previous_operations=list(self._registry[skill.name].skill.operations),
            )

        self._registry[skill.name] = RegistryEntry(
            skill=skill, namespace=SkillNamespace(skill, bound_ops)
        )
        logger.info("skill_registered", skill=skill.name, operations=len(bound_ops))
        return self

    register = use

    def get_skill(self, name: str) -> Skill | None:
        entry = self._registry.get(name)
        return entry.skill if entry else None

    def search(self, query: str) -> list[SearchResult]:
        """Find registered operations matching `query`, best first."""
        return search(
            query,
            (entry.skill for entry in self._registry.values()),
            self.permissions,
            self._default_permission,
        )

    def resolve(self, qualified_name: str) -> Permission:
        """Current effective permission of a registered operation."""
        _, op = self._lookup(qualified_name)
        return resolve_permission(
            qualified_name,
            op.default_permission,
            self.permissions,
            self._default_permission,
        )

    async def call(self, qualified_name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Invoke an operation by qualified name.

        Raises:
            OperationNotFoundError: If no registered skill provides it
            PermissionDeniedError: If the call is not permitted
        """
        entry, op_name = self._lookup_entry(qualified_name)
        return await entry.namespace[op_name](*args, **kwargs)

    def _lookup_entry(self, qualified_name: str) -> tuple[RegistryEntry, str]:
        skill_name, _, op_name = qualified_name.partition(".")
        entry = self._registry.get(skill_name)
        if entry is None or op_name not in entry.namespace:
            raise OperationNotFoundError(qualified_name)
        return entry, op_name

    def _lookup(self, qualified_name: str) -> tuple[Skill, Operation]:
        entry, op_name = self._lookup_entry(qualified_name)
        return entry.skill, entry.skill.operations[op_name]

    async def _dispatch(
        self,
        qualified_name: str,
        op: Operation,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        permission = resolve_permission(
            qualified_name,
            op.default_permission,
            self.permissions,
            self._default_permission,
        )

        with structlog.contextvars.bound_contextvars(operation=qualified_name):
            if permission == "ask":
                approved = await self._request_approval(qualified_name, args, kwargs)
                if not approved:
                    logger.info("operation_denied", permission="ask")
                    raise PermissionDeniedError(qualified_name)
            elif permission != "allow":
                # "deny" and any unrecognised level written into the live policy
                logger.info("operation_denied", permission=permission)
                raise PermissionDeniedError(qualified_name)

            logger.debug("operation_invoked")
            result = op.handler(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

    async def _request_approval(
        self,
        qualified_name: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> bool:
        if self._on_permission_request is None:
            logger.debug("approval_callback_missing")
            return False

        # Keyword arguments travel as a trailing dict, only when present
        call_args: list[Any] = list(args)
        if kwargs:
            call_args.append(dict(kwargs))

        decision = self._on_permission_request(qualified_name, call_args)
        if inspect.isawaitable(decision):
            decision = await decision
        return bool(decision)

    def __getattr__(self, name: str) -> SkillNamespace:
        registry = self.__dict__.get("_registry", {})
        entry = registry.get(name)
        if entry is None:
            raise AttributeError(f"No skill registered under '{name}'")
        return entry.namespace

    def __getitem__(self, name: str) -> SkillNamespace:
        return self._registry[name].namespace

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._registry))

    def __repr__(self) -> str:
        return (
            f"Bevel(skills={self.skills}, "
            f"default_permission={self._default_permission!r})"
        )


__all__ = ["ApprovalCallback", "Bevel"]
