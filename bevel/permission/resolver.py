"""
Permission resolution.

Resolves the effective permission level of an operation from, in order:
an exact policy entry, a skill-level wildcard entry ("git.*"), the
operation's own declared default, and the agent's global default.
"""

from typing import Literal

Permission = Literal["allow", "ask", "deny"]
PermissionPolicy = dict[str, Permission]

PERMISSION_LEVELS: tuple[Permission, ...] = ("allow", "ask", "deny")

WILDCARD_SUFFIX = ".*"


def wildcard_key(qualified_name: str) -> str | None:
    """
    Return the skill-level wildcard key for a qualified name.

    Only the part before the first dot is used, so "a.b.c" maps to "a.*".
    Names without a dot have no wildcard key.
    """
    skill, sep, _ = qualified_name.partition(".")
    if not sep:
        return None
    return skill + WILDCARD_SUFFIX


def resolve_permission(
    qualified_name: str,
    operation_default: Permission | None,
    policy: PermissionPolicy,
    global_default: Permission,
) -> Permission:
    """
    Resolve the permission level for an operation.

    Args:
        qualified_name: "<skill>.<operation>"
        operation_default: The operation's declared default, or None
        policy: Mapping of exact or "<skill>.*" keys to levels
        global_default: Level used when nothing else decides

    Returns:
        The effective permission level
    """
    if qualified_name in policy:
        return policy[qualified_name]

    wildcard = wildcard_key(qualified_name)
    if wildcard is not None and wildcard in policy:
        return policy[wildcard]

    if operation_default is not None:
        return operation_default

    return global_default


__all__ = [
    "Permission",
    "PermissionPolicy",
    "PERMISSION_LEVELS",
    "resolve_permission",
    "wildcard_key",
]
