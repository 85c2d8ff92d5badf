"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from prepsync.cache.store import MemoryCacheStore  # noqa: E402
from prepsync.models import Node  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: CLI smoke tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def fixed_now():
    """A fixed reference time for schedule computations."""
    return datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture
def memory_cache():
    """Empty in-memory cache store."""
    return MemoryCacheStore()


@pytest.fixture
def sample_catalog():
    """Provide a topic catalog resembling the server's."""
    slugs = [
        ("react", "React"),
        ("javascript", "JavaScript"),
        ("html-css-combined", "HTML & CSS"),
        ("git-version-control", "Git"),
        ("nodejs", "Node.js"),
        ("express", "Express"),
        ("mongodb", "MongoDB"),
        ("postgresql", "PostgreSQL"),
        ("typescript", "TypeScript"),
        ("nextjs", "Next.js"),
        ("angular", "Angular"),
        ("python", "Python"),
        ("django", "Django"),
        ("data-structures", "Data Structures"),
        ("algorithms", "Algorithms"),
        ("blind-75", "Blind 75"),
        ("dsa", "DSA"),
        ("api-design", "API Design"),
        ("database-design", "Database Design"),
        ("system-design", "System Design"),
        ("distributed-systems", "Distributed Systems"),
        ("aws-cloud", "AWS Cloud"),
        ("java", "Java"),
        ("dart", "Dart"),
        ("flutter", "Flutter"),
        ("golang", "Go"),
        ("concurrency", "Concurrency"),
    ]
    return [Node(slug=slug, name=name, category_count=3) for slug, name in slugs]
