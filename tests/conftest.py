"""
Shared pytest fixtures and configuration for LearnForge tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import sys
from pathlib import Path

import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def sample_concepts():
    """
    Fixture providing a small dependency chain of fresh concepts.

    Returns:
        list: variables <- functions <- recursion
    """
    from learnforge.models.concept import Concept

    return [
        Concept(concept_id="variables", title="Variables", description="Named storage"),
        Concept(
            concept_id="functions",
            title="Functions",
            description="Reusable blocks of code",
            dependencies={"variables"},
        ),
        Concept(
            concept_id="recursion",
            title="Recursion",
            description="A function that calls itself",
            dependencies={"functions"},
        ),
    ]


@pytest.fixture
def extraction_payload():
    """
    Fixture providing a raw extraction response as a provider would return it.

    Returns:
        dict: Wrapped concept list with one self-dependency and one missing field
    """
    return {
        "concepts": [
            {
                "id": "variables",
                "title": "Variables",
                "description": "Named storage",
                "dependencies": [],
            },
            {
                "id": "functions",
                "title": "Functions",
                "description": "Reusable blocks of code",
                "dependencies": ["variables", "functions"],
            },
            {
                "id": "recursion",
                "title": "Recursion",
                "dependencies": ["functions"],
            },
        ]
    }


@pytest.fixture(autouse=True)
def reset_token_tracker():
    """
    Auto-fixture to reset token tracker before each test.

    This ensures tests don't interfere with each other.
    """
    from learnforge.config import token_tracker

    token_tracker.reset()
    yield
    token_tracker.reset()


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests in unit/ directory as unit tests
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Mark tests in integration/ directory as integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
