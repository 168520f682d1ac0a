"""
Bevel - permission-gated skills for agents

Usage:
    from bevel import Bevel, ApprovalQueue, define_skill, operation

    @operation("Show the working tree status", tags=["vcs"], default_permission="allow")
    async def status() -> str:
        ...

    git = define_skill(name="git", description="Git operations", operations={"status": status})

    approvals = ApprovalQueue()
    agent = Bevel(permissions={"git.push": "deny"}, on_permission_request=approvals).use(git)

    print(await agent.git.status())
    print(agent.search("status"))
"""

from bevel.agent.agent import ApprovalCallback, Bevel
from bevel.agent.search import SearchResult
from bevel.config.settings import BevelSettings
from bevel.exceptions import BevelError, OperationNotFoundError
from bevel.permission import (
    ApprovalQueue,
    PendingApproval,
    Permission,
    PermissionDeniedError,
    PermissionPolicy,
    PolicyError,
    load_policy,
    resolve_permission,
)
from bevel.skill import (
    Operation,
    Skill,
    SkillDefinitionError,
    SkillError,
    define_skill,
    operation,
)

__all__ = [
    "ApprovalCallback",
    "ApprovalQueue",
    "Bevel",
    "BevelError",
    "BevelSettings",
    "Operation",
    "OperationNotFoundError",
    "PendingApproval",
    "Permission",
    "PermissionDeniedError",
    "PermissionPolicy",
    "PolicyError",
    "SearchResult",
    "Skill",
    "SkillDefinitionError",
    "SkillError",
    "define_skill",
    "load_policy",
    "operation",
    "resolve_permission",
]
