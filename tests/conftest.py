"""
pytest configuration and fixtures for bytedecl tests.

Provides:
- Hypothesis profiles (select with HYPOTHESIS_PROFILE)
- Paths to the YAML fixture schemas
- Sample QYV and Velvet executables as bytes
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import settings, Verbosity

# Allow running the tests from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from formats import qyv_bytes, velvet_bytes


FIXTURES = Path(__file__).parent / 'fixtures'


# Default profile: balanced speed and coverage
settings.register_profile("default", max_examples=100, deadline=None)

# CI profile: more thorough testing
settings.register_profile("ci", max_examples=500, deadline=None)

# Dev profile: fast iteration
settings.register_profile("dev", max_examples=10, deadline=None)

# Debug profile: verbose output
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose, deadline=None)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def qyv_data() -> bytes:
    return qyv_bytes()


@pytest.fixture
def velvet_data() -> bytes:
    return velvet_bytes()


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
