"""
Pytest configuration and fixtures for link crawler tests.
"""

import os
import logging

import pytest
from hypothesis import settings, Verbosity

from link_crawler.crawlers import FakeFetcher, build_reference_fixture

# Threads make every example slower than a pure function; keep runs small
settings.register_profile("fast", max_examples=25, deadline=None, verbosity=Verbosity.quiet)
settings.register_profile("thorough", max_examples=200, deadline=None, verbosity=Verbosity.normal)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "fast"))


@pytest.fixture
def reference_pages():
    """Reference page graph with bare paths ("/", "/pkg/", ...)."""
    return build_reference_fixture(base="")


@pytest.fixture
def reference_fetcher(reference_pages):
    """Fake fetcher serving the reference graph."""
    return FakeFetcher(pages=reference_pages)


def pytest_configure(config):
    """Configure pytest with custom settings."""
    # Keep LINK_CRAWLER_* variables from the outer environment out of tests
    for name in list(os.environ):
        if name.startswith("LINK_CRAWLER_"):
            del os.environ[name]

    logging.getLogger("link_crawler").setLevel(logging.WARNING)
    logging.getLogger("hypothesis").setLevel(logging.WARNING)


def pytest_collection_modifyitems(config, items):
    """Mark property-based and integration tests."""
    for item in items:
        if "properties" in item.fspath.basename:
            item.add_marker(pytest.mark.property)

        if "integration" in item.fspath.basename:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
