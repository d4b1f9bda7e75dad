"""Shared pytest fixtures and configuration for all tests."""

import os
from collections.abc import Generator
from pathlib import Path
from typing import cast

import pytest
from _pytest.config import Config

from tests.utils.mock_factory import FakeJiraProvider, make_export_config

# Settings are read when src.config is first imported
os.environ.setdefault("J2W_TEST_MODE", "true")
os.environ.setdefault("J2W_JIRA_URL", "https://jira.example.com")
os.environ.setdefault("J2W_JIRA_USERNAME", "export@example.com")
os.environ.setdefault("J2W_JIRA_API_TOKEN", "test-token-0123456789")


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line(
        "markers",
        "integration: mark a test as an integration test",
    )


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean environment flag (true/false)."""
    val = os.environ.get(name, "true" if default else "false").strip().lower()
    return val in {"1", "true", "yes", "on"}


def pytest_collection_modifyitems(config: Config, items: list[pytest.Item]) -> None:  # noqa: ARG001
    """Apply default skipping for non-unit tests.

    - Integration tests are skipped unless J2W_RUN_INTEGRATION is true.
    - Unmarked tests are skipped unless J2W_RUN_ALL_TESTS is true.
    """
    run_all = _env_flag("J2W_RUN_ALL_TESTS", False)
    run_integration = _env_flag("J2W_RUN_INTEGRATION", False) or run_all

    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled by default. Set J2W_RUN_INTEGRATION=true to enable.",
    )
    skip_unmarked = pytest.mark.skip(
        reason="Unmarked test skipped by default. Mark with unit/integration or set J2W_RUN_ALL_TESTS=true.",
    )

    for item in items:
        kws = item.keywords
        if "integration" in kws and not run_integration:
            item.add_marker(skip_integration)
            continue
        if not run_all and not any(m in kws for m in ("unit", "integration")):
            item.add_marker(skip_unmarked)


@pytest.fixture
def test_env() -> Generator[dict[str, str]]:
    """Let a test modify environment variables; restored afterwards."""
    original_env = os.environ.copy()
    try:
        yield cast("dict[str, str]", os.environ)
    finally:
        os.environ.clear()
        os.environ.update(original_env)


@pytest.fixture
def provider(tmp_path: Path) -> FakeJiraProvider:
    return FakeJiraProvider(download_dir=tmp_path / "attachments")


@pytest.fixture
def export_config():
    return make_export_config()
