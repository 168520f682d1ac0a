"""
Permission system for operation dispatch.

Resolves allow / ask / deny levels from a policy and coordinates
approval of "ask" calls.
"""

from bevel.permission.approval import ApprovalQueue, PendingApproval
from bevel.permission.exceptions import PermissionDeniedError, PolicyError
from bevel.permission.policy import load_policy, validate_policy
from bevel.permission.resolver import (
    PERMISSION_LEVELS,
    Permission,
    PermissionPolicy,
    resolve_permission,
    wildcard_key,
)

__all__ = [
    "ApprovalQueue",
    "PendingApproval",
    "Permission",
    "PermissionDeniedError",
    "PermissionPolicy",
    "PERMISSION_LEVELS",
    "PolicyError",
    "load_policy",
    "resolve_permission",
    "validate_policy",
    "wildcard_key",
]
