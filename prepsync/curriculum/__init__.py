"""
Curriculum ordering and goal-specific path selection.

Modules:
- graph: prerequisite table (DependencyGraph)
- rules: goal identifiers, experience tiers and PathRule table
- scheduler: CurriculumScheduler (filter + topological sort)
"""
from .graph import DEFAULT_DEPENDENCY_GRAPH, DependencyGraph
from .rules import PATH_RULES, ExperienceLevel, GoalId, PathRule, rule_for
from .scheduler import CurriculumScheduler

__all__ = [
    "CurriculumScheduler",
    "DEFAULT_DEPENDENCY_GRAPH",
    "DependencyGraph",
    "ExperienceLevel",
    "GoalId",
    "PATH_RULES",
    "PathRule",
    "rule_for",
]
