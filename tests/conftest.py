"""Shared fixtures: every test runs against an isolated home directory."""

from pathlib import Path

import pytest

from ccvm.core.paths import DirectoryContext, EnvironmentView, resolve_context
from ccvm.core.profiles import init_store


@pytest.fixture(autouse=True)
def _clear_ccvm_environment(monkeypatch):
    """Keep developer settings from leaking into tests."""
    for name in ("CCVM_TEST_MODE", "CCVM_TEST_HOME", "CCVM_LANG", "CCVM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_env(tmp_path: Path) -> EnvironmentView:
    return EnvironmentView(
        home=tmp_path / "real-home",
        test_mode=True,
        test_home=tmp_path / "isolated-home",
    )


@pytest.fixture
def ctx(test_env: EnvironmentView) -> DirectoryContext:
    directories = resolve_context(test_env)
    init_store(directories)
    return directories
