"""
Goal-specific path rules.

Each learning goal (career track) has exactly one PathRule describing which
catalog topics belong to its path:

- exclude: substring patterns; a matching slug is dropped first
- include / must_have: exact slugs kept when not excluded
- keywords: substring patterns that keep an otherwise unlisted slug
- tiers: slugs recommended per experience level, cumulative

must_have slugs are injected after filtering, so a required topic is present
even when an exclude pattern matched it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class GoalId(str, Enum):
    """Known learning goals."""

    NEW_BEGINNER = "new-beginner"
    MERN_FULLSTACK = "mern-fullstack"
    MEAN_FULLSTACK = "mean-fullstack"
    PYTHON_FULLSTACK = "python-fullstack"
    JAVA_ENTERPRISE = "java-enterprise"
    FLUTTER_MOBILE = "flutter-mobile"
    FRONTEND_SPECIALIST = "frontend-specialist"
    BACKEND_SPECIALIST = "backend-specialist"
    GOLANG_BACKEND = "golang-backend"
    CSHARP_DOTNET = "csharp-dotnet"
    MACHINE_LEARNING_ENGINEER = "machine-learning-engineer"
    DATA_ANALYST = "data-analyst"
    AWS_CLOUD_ARCHITECT = "aws-cloud-architect"
    INTERVIEW_PREP = "interview-prep"

    @classmethod
    def parse(cls, value: str | GoalId | None) -> GoalId | None:
        """Resolve a goal identifier; absent, 'all' and unknown ids give None."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ExperienceLevel(str, Enum):
    """Self-reported experience tiers, in increasing order."""

    JUNIOR = "0-1_year"
    MID = "1-3_years"
    SENIOR = "3-5_years"

    @classmethod
    def parse(cls, value: str | ExperienceLevel | None) -> ExperienceLevel:
        """Resolve a tier; absent or unknown values fall back to the first tier."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value) if value else cls.JUNIOR
        except ValueError:
            return cls.JUNIOR

    def up_to(self) -> list[ExperienceLevel]:
        """This tier and every tier below it."""
        levels = list(ExperienceLevel)
        return levels[: levels.index(self) + 1]


@dataclass(frozen=True)
class PathRule:
    """Selection predicates for one goal."""

    goal: GoalId
    keywords: tuple[str, ...] = ()
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    must_have: tuple[str, ...] = ()
    tiers: dict[ExperienceLevel, tuple[str, ...]] = field(default_factory=dict)

    def included_slugs(self, level: ExperienceLevel | None = None) -> frozenset[str]:
        """Explicit include list plus every tier up to ``level``."""
        slugs = set(self.include)
        for tier in ExperienceLevel.parse(level).up_to():
            slugs.update(self.tiers.get(tier, ()))
        return frozenset(slugs)

    def is_excluded(self, slug: str) -> bool:
        slug = slug.lower()
        return any(pattern in slug for pattern in self.exclude)

    def matches_keyword(self, slug: str) -> bool:
        slug = slug.lower()
        return any(keyword in slug for keyword in self.keywords)


def _tiers(
    junior: tuple[str, ...], mid: tuple[str, ...], senior: tuple[str, ...]
) -> dict[ExperienceLevel, tuple[str, ...]]:
    return {
        ExperienceLevel.JUNIOR: junior,
        ExperienceLevel.MID: mid,
        ExperienceLevel.SENIOR: senior,
    }


# =============================================================================
# Shipped Rule Table
# =============================================================================

PATH_RULES: dict[GoalId, PathRule] = {
    GoalId.NEW_BEGINNER: PathRule(
        goal=GoalId.NEW_BEGINNER,
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "javascript", "react"),
            ("typescript", "react", "nextjs", "dsa"),
            ("system-design", "algorithms", "blind-75"),
        ),
        must_have=("html-css-combined", "javascript", "git-version-control"),
    ),
    GoalId.MERN_FULLSTACK: PathRule(
        goal=GoalId.MERN_FULLSTACK,
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "javascript", "react",
             "nodejs", "express", "mongodb", "postgresql"),
            ("typescript", "nextjs", "data-structures", "algorithms", "blind-75", "api-design"),
            ("system-design", "distributed-systems", "aws-cloud", "concurrency",
             "caching-performance", "security-engineering"),
        ),
        must_have=("html-css-combined", "javascript", "react", "nodejs", "mongodb"),
    ),
    GoalId.MEAN_FULLSTACK: PathRule(
        goal=GoalId.MEAN_FULLSTACK,
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "javascript", "angular",
             "nodejs", "express", "mongodb", "postgresql"),
            ("typescript", "data-structures", "algorithms", "blind-75", "api-design"),
            ("system-design", "distributed-systems", "aws-cloud", "concurrency",
             "security-engineering"),
        ),
        must_have=("html-css-combined", "javascript", "angular", "nodejs", "mongodb"),
    ),
    GoalId.PYTHON_FULLSTACK: PathRule(
        goal=GoalId.PYTHON_FULLSTACK,
        keywords=("python",),
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "javascript", "python",
             "django", "postgresql"),
            ("react", "typescript", "data-structures", "algorithms", "blind-75", "mongodb"),
            ("system-design", "distributed-systems", "aws-cloud", "api-design"),
        ),
        must_have=("python", "django", "postgresql", "algorithms"),
    ),
    GoalId.JAVA_ENTERPRISE: PathRule(
        goal=GoalId.JAVA_ENTERPRISE,
        exclude=("javascript-",),
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "javascript", "java", "postgresql"),
            ("mongodb", "data-structures", "algorithms", "blind-75", "api-design"),
            ("system-design", "distributed-systems", "aws-cloud", "concurrency",
             "security-engineering"),
        ),
        must_have=("java", "postgresql", "algorithms", "system-design"),
    ),
    GoalId.FLUTTER_MOBILE: PathRule(
        goal=GoalId.FLUTTER_MOBILE,
        keywords=("dart", "flutter"),
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "dart", "flutter"),
            ("data-structures", "algorithms", "blind-75", "api-design"),
            ("aws-cloud", "system-design", "caching-performance"),
        ),
        must_have=("dart", "flutter", "data-structures"),
    ),
    GoalId.FRONTEND_SPECIALIST: PathRule(
        goal=GoalId.FRONTEND_SPECIALIST,
        exclude=("django", "spring", "dotnet"),
        tiers=_tiers(
            ("html-css-combined", "git-version-control", "javascript", "react"),
            ("typescript", "nextjs", "angular", "data-structures", "api-design"),
            ("system-design", "algorithms", "caching-performance", "code-quality", "aws-cloud"),
        ),
        must_have=("html-css-combined", "javascript", "react"),
    ),
    GoalId.BACKEND_SPECIALIST: PathRule(
        goal=GoalId.BACKEND_SPECIALIST,
        exclude=("html-css",),
        tiers=_tiers(
            ("git-version-control", "javascript", "nodejs", "express", "postgresql", "mongodb"),
            ("python", "django", "typescript", "data-structures", "algorithms", "blind-75",
             "api-design"),
            ("system-design", "distributed-systems", "concurrency", "caching-performance",
             "security-engineering", "reliability-observability", "aws-cloud"),
        ),
        must_have=("nodejs", "postgresql", "algorithms", "api-design"),
    ),
    GoalId.GOLANG_BACKEND: PathRule(
        goal=GoalId.GOLANG_BACKEND,
        keywords=("golang",),
        tiers=_tiers(
            ("git-version-control", "golang", "postgresql"),
            ("mongodb", "data-structures", "algorithms", "blind-75", "api-design", "concurrency"),
            ("system-design", "distributed-systems", "networking", "caching-performance",
             "aws-cloud"),
        ),
        must_have=("golang", "postgresql", "algorithms", "concurrency"),
    ),
    GoalId.CSHARP_DOTNET: PathRule(
        goal=GoalId.CSHARP_DOTNET,
        keywords=("csharp", "dotnet"),
        tiers=_tiers(
            ("git-version-control", "csharp", "dotnet", "postgresql"),
            ("data-structures", "algorithms", "blind-75", "api-design"),
            ("system-design", "distributed-systems", "aws-cloud"),
        ),
        must_have=("csharp", "dotnet", "algorithms"),
    ),
    GoalId.MACHINE_LEARNING_ENGINEER: PathRule(
        goal=GoalId.MACHINE_LEARNING_ENGINEER,
        keywords=("machine-learning",),
        tiers=_tiers(
            ("git-version-control", "python", "postgresql", "data-structures"),
            ("machine-learning", "data-analyst", "mongodb", "algorithms"),
            ("system-design", "distributed-systems", "aws-cloud", "blind-75"),
        ),
        must_have=("python", "machine-learning", "algorithms"),
    ),
    GoalId.DATA_ANALYST: PathRule(
        goal=GoalId.DATA_ANALYST,
        tiers=_tiers(
            ("git-version-control", "python", "postgresql"),
            ("data-analyst", "machine-learning", "mongodb", "data-structures"),
            ("aws-cloud", "algorithms"),
        ),
        must_have=("python", "data-analyst", "postgresql"),
    ),
    GoalId.AWS_CLOUD_ARCHITECT: PathRule(
        goal=GoalId.AWS_CLOUD_ARCHITECT,
        keywords=("aws",),
        tiers=_tiers(
            ("git-version-control", "aws-cloud", "networking", "os"),
            ("python", "dsa", "system-design", "security-engineering"),
            ("distributed-systems", "concurrency", "reliability-observability"),
        ),
        must_have=("aws-cloud", "system-design"),
    ),
    GoalId.INTERVIEW_PREP: PathRule(
        goal=GoalId.INTERVIEW_PREP,
        keywords=("dsa", "algorithm", "blind"),
        tiers=_tiers(
            ("dsa", "data-structures", "algorithms", "blind-75", "python"),
            ("system-design", "git-version-control", "networking", "os", "api-design"),
            ("distributed-systems", "concurrency", "security-engineering"),
        ),
        must_have=("dsa", "blind-75", "algorithms", "system-design"),
    ),
}


def rule_for(
    goal_id: str | GoalId | None,
    rules: dict[GoalId, PathRule] | None = None,
) -> PathRule | None:
    """Look up the rule for a goal; None means no filtering."""
    goal = GoalId.parse(goal_id)
    if goal is None:
        return None
    return (PATH_RULES if rules is None else rules).get(goal)
