from bevel.agent.agent import ApprovalCallback, Bevel
from bevel.agent.registry import RegistryEntry, SkillNamespace
from bevel.agent.search import SearchResult, score_match, search

__all__ = [
    "ApprovalCallback",
    "Bevel",
    "RegistryEntry",
    "SearchResult",
    "SkillNamespace",
    "score_match",
    "search",
]
