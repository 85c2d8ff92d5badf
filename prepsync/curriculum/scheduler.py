"""
Curriculum Scheduler.

Turns the full topic catalog into a goal-specific learning path:
- Filter by the goal's PathRule (exclude -> include/must-have -> keywords)
- Inject must-have topics dropped by filtering
- Order by prerequisites (depth-first topological sort)

Pure and synchronous: no I/O, output is a function of the catalog, the goal
and the static tables.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum

from loguru import logger

from prepsync.curriculum.graph import DEFAULT_DEPENDENCY_GRAPH, DependencyGraph
from prepsync.curriculum.rules import (
    PATH_RULES,
    ExperienceLevel,
    GoalId,
    PathRule,
    rule_for,
)
from prepsync.models import Node


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class CurriculumScheduler:
    """
    Produce ordered, goal-specific topic sequences.

    Uses the dependency graph to order topics and the path rule table to
    select them.
    """

    def __init__(
        self,
        graph: DependencyGraph | None = None,
        rules: dict[GoalId, PathRule] | None = None,
    ):
        self.graph = DEFAULT_DEPENDENCY_GRAPH if graph is None else graph
        self.rules = PATH_RULES if rules is None else rules

    def generate_path(
        self,
        catalog: Sequence[Node],
        goal_id: str | GoalId | None = None,
        experience_level: str | ExperienceLevel | None = None,
    ) -> list[Node]:
        """
        Build the learning path for a goal.

        Args:
            catalog: Every topic the server knows about
            goal_id: Goal identifier; absent, 'all' or unknown means no filtering
            experience_level: Tier whose recommendations (cumulative) count as includes

        Returns:
            Selected topics in dependency order
        """
        rule = rule_for(goal_id, self.rules)
        if rule is None:
            return self.sort_by_dependency(catalog)

        selected = self.filter_catalog(catalog, rule, experience_level)

        # Required topics are never omitted, even when an exclude pattern hit them
        present = {node.slug for node in selected}
        by_slug = {node.slug: node for node in catalog}
        for slug in rule.must_have:
            if slug not in present and slug in by_slug:
                selected.append(by_slug[slug])
                present.add(slug)

        logger.debug(
            "Path for goal={} level={}: {}/{} topics",
            rule.goal.value,
            ExperienceLevel.parse(experience_level).value,
            len(selected),
            len(catalog),
        )
        return self.sort_by_dependency(selected)

    @staticmethod
    def filter_catalog(
        catalog: Iterable[Node],
        rule: PathRule,
        experience_level: str | ExperienceLevel | None = None,
    ) -> list[Node]:
        """Apply a rule's predicates in precedence order, keeping catalog order."""
        included = rule.included_slugs(ExperienceLevel.parse(experience_level))
        must_have = set(rule.must_have)
        kept: list[Node] = []
        for node in catalog:
            if rule.is_excluded(node.slug):
                continue
            if node.slug in included or node.slug in must_have:
                kept.append(node)
            elif rule.matches_keyword(node.slug):
                kept.append(node)
        return kept

    def sort_by_dependency(self, nodes: Sequence[Node]) -> list[Node]:
        """
        Order topics so prerequisites come first.

        Only prerequisites present in ``nodes`` are considered. A node reached
        again while still in progress (a cycle) is skipped, so every node is
        emitted exactly once, in DFS completion order.
        """
        by_slug: dict[str, Node] = {}
        for node in nodes:
            by_slug.setdefault(node.slug, node)

        marks: dict[str, _Mark] = {}
        ordered: list[Node] = []

        for root in by_slug:
            if marks.get(root, _Mark.UNVISITED) is not _Mark.UNVISITED:
                continue
            # Iterative DFS: (slug, index of next prerequisite to visit)
            stack: list[tuple[str, int]] = [(root, 0)]
            marks[root] = _Mark.IN_PROGRESS
            while stack:
                slug, index = stack[-1]
                prereqs = self.graph.prerequisites(slug)
                if index < len(prereqs):
                    stack[-1] = (slug, index + 1)
                    prereq = prereqs[index]
                    if prereq in by_slug and marks.get(prereq, _Mark.UNVISITED) is _Mark.UNVISITED:
                        marks[prereq] = _Mark.IN_PROGRESS
                        stack.append((prereq, 0))
                    continue
                stack.pop()
                marks[slug] = _Mark.DONE
                ordered.append(by_slug[slug])

        return ordered

    @staticmethod
    def next_recommendation(nodes: Iterable[Node]) -> Node | None:
        """First topic on the path that is not yet complete."""
        for node in nodes:
            if not node.is_complete:
                return node
        return None

    def path_metadata(self, goal_id: str | GoalId | None) -> PathRule | None:
        """Rule describing a goal, or None for unknown goals."""
        return rule_for(goal_id, self.rules)
