"""
Operation search.

Ranks registered operations against a free-text query using
case-insensitive substring matching over names, description and tags.
An empty query matches every operation.
"""

from typing import Iterable

from pydantic import BaseModel, Field

from bevel.permission.resolver import Permission, PermissionPolicy, resolve_permission
from bevel.skill.definition import Skill

# Score tiers, highest applicable tier wins
SCORE_EXACT_NAME = 100
SCORE_QUALIFIED_NAME = 80
SCORE_OPERATION_NAME = 70
SCORE_SKILL_NAME = 60
SCORE_DESCRIPTION = 40
SCORE_TAG = 30


class SearchResult(BaseModel):
    """An operation matched by a search, with its current permission."""

    skill: str
    operation: str
    qualified_name: str
    description: str
    signature: str | None = None
    tags: list[str] = Field(default_factory=list)
    permission: Permission


def score_match(query: str, result: SearchResult) -> int:
    """Score a candidate against a query. 0 means no match."""
    q = query.lower()
    qualified_name = result.qualified_name.lower()

    if qualified_name == q:
        return SCORE_EXACT_NAME
    if q in qualified_name:
        return SCORE_QUALIFIED_NAME
    if q in result.operation.lower():
        return SCORE_OPERATION_NAME
    if q in result.skill.lower():
        return SCORE_SKILL_NAME
    if q in result.description.lower():
        return SCORE_DESCRIPTION
    if any(q in tag.lower() for tag in result.tags):
        return SCORE_TAG
    return 0


def search(
    query: str,
    skills: Iterable[Skill],
    policy: PermissionPolicy,
    global_default: Permission,
) -> list[SearchResult]:
    """
    Search operations of the given skills.

    Args:
        query: Free-text query ("" lists everything)
        skills: Registered skills
        policy: Live permission policy
        global_default: Agent's global default permission

    Returns:
        Matches ordered by score descending, then by qualified name
    """
    scored: list[tuple[int, SearchResult]] = []

    for skill in skills:
        for op_name, op in skill.operations.items():
            qualified_name = skill.qualified_name(op_name)
            candidate = SearchResult(
                skill=skill.name,
                operation=op_name,
                qualified_name=qualified_name,
                description=op.description,
                signature=op.signature,
                tags=list(op.tags),
                permission=resolve_permission(
                    qualified_name, op.default_permission, policy, global_default
                ),
            )
            score = score_match(query, candidate)
            if score > 0:
                scored.append((score, candidate))

    scored.sort(key=lambda item: (-item[0], item[1].qualified_name))
    return [result for _, result in scored]


__all__ = ["SearchResult", "score_match", "search"]
