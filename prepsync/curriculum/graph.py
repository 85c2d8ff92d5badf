"""
Curriculum dependency graph.

Maps a topic slug to the slugs that should be studied before it. The table is
static configuration; a cycle is a defect in that configuration and is
reported by ``validate()``.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType

from prepsync.exceptions import CurriculumConfigError

# =============================================================================
# Shipped Curriculum Edges
# =============================================================================

DEFAULT_EDGES: dict[str, tuple[str, ...]] = {
    "javascript": ("html-css-combined",),
    "typescript": ("javascript",),
    "react": ("javascript", "html-css-combined"),
    "nextjs": ("react",),
    "angular": ("typescript", "javascript"),
    "vue": ("javascript",),
    "nodejs": ("javascript",),
    "express": ("nodejs",),
    "mongodb": ("javascript",),
    "django": ("python",),
    "flask": ("python",),
    "fastapi": ("python",),
    "spring-boot": ("java",),
    "flutter": ("dart",),
    "system-design": ("database-design", "api-design"),
    "distributed-systems": ("system-design",),
    "blind-75": ("data-structures",),
    "algorithms": ("data-structures",),
}


class DependencyGraph:
    """Read-only prerequisite table keyed by topic slug."""

    def __init__(self, edges: Mapping[str, Sequence[str]] | None = None):
        source = DEFAULT_EDGES if edges is None else edges
        self._edges: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {slug: tuple(prereqs) for slug, prereqs in source.items()}
        )

    def prerequisites(self, slug: str) -> tuple[str, ...]:
        """Direct prerequisites of ``slug`` (empty for unknown slugs)."""
        return self._edges.get(slug, ())

    def __contains__(self, slug: object) -> bool:
        return slug in self._edges

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def find_cycle(self) -> list[str] | None:
        """
        Find one prerequisite cycle.

        Returns:
            The slugs forming the cycle, first slug repeated at the end,
            or None when the graph is acyclic.
        """
        done: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()

        def visit(slug: str) -> list[str] | None:
            if slug in done:
                return None
            if slug in on_stack:
                return stack[stack.index(slug):] + [slug]
            stack.append(slug)
            on_stack.add(slug)
            for prereq in self.prerequisites(slug):
                cycle = visit(prereq)
                if cycle:
                    return cycle
            stack.pop()
            on_stack.discard(slug)
            done.add(slug)
            return None

        for slug in self._edges:
            cycle = visit(slug)
            if cycle:
                return cycle
        return None

    def validate(self) -> None:
        """Raise CurriculumConfigError if the table contains a cycle."""
        cycle = self.find_cycle()
        if cycle:
            raise CurriculumConfigError(
                "Dependency cycle in curriculum graph: " + " -> ".join(cycle)
            )


DEFAULT_DEPENDENCY_GRAPH = DependencyGraph()
