"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest

from code_posts.core.source import SourceUnit, parse_source
from code_posts.core.tags import EXAMPLE_CUSTOM_TAGS, TagRegistry

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> TagRegistry:
    """Return the built-in tag registry."""
    return TagRegistry.default()


@pytest.fixture
def custom_registry() -> TagRegistry:
    """Return the built-ins extended with the example custom tags."""
    return TagRegistry.with_builtins(EXAMPLE_CUSTOM_TAGS)


def unit_from(source: str, language: str = "typescript") -> SourceUnit:
    return parse_source(source, language, path="sample.ts")
