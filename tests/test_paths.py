"""Tests for directory resolution and test-mode isolation."""

from pathlib import Path

import pytest

from ccvm.core.errors import ConfigError
from ccvm.core.paths import EnvironmentView, resolve_context


def test_production_context_uses_real_home(tmp_path: Path) -> None:
    env = EnvironmentView(home=tmp_path)
    ctx = resolve_context(env)

    assert ctx.home_dir == tmp_path
    assert ctx.config_dir == tmp_path / ".claude" / "ccvm"
    assert ctx.providers_dir == tmp_path / ".claude" / "ccvm" / "providers"
    assert ctx.config_file == ctx.config_dir / "config.json"
    assert not ctx.test_mode


def test_resolve_context_does_not_create_directories(tmp_path: Path) -> None:
    resolve_context(EnvironmentView(home=tmp_path))
    assert not (tmp_path / ".claude").exists()


def test_test_mode_without_override_is_rejected(tmp_path: Path) -> None:
    env = EnvironmentView(home=tmp_path, test_mode=True)

    with pytest.raises(ConfigError, match="test mode requires an isolated home"):
        resolve_context(env)


def test_test_mode_uses_override_not_real_home(tmp_path: Path) -> None:
    real_home = tmp_path / "real"
    isolated = tmp_path / "isolated"
    ctx = resolve_context(EnvironmentView(home=real_home, test_mode=True, test_home=isolated))

    assert ctx.home_dir == isolated
    assert ctx.test_mode
    assert real_home not in ctx.config_dir.parents


def test_test_mode_override_pointing_at_real_home_is_rejected(tmp_path: Path) -> None:
    env = EnvironmentView(home=tmp_path, test_mode=True, test_home=tmp_path / "sub" / "..")

    with pytest.raises(ConfigError):
        resolve_context(env)


def test_environment_view_reads_environ_mapping(tmp_path: Path) -> None:
    env = EnvironmentView.from_environ(
        {
            "HOME": str(tmp_path),
            "CCVM_TEST_MODE": "true",
            "CCVM_TEST_HOME": str(tmp_path / "sandbox"),
            "CCVM_LANG": "zh_CN.UTF-8",
            "CCVM_LOG_LEVEL": "debug",
        }
    )

    assert env.home == tmp_path
    assert env.test_mode is True
    assert env.test_home == tmp_path / "sandbox"
    assert env.locale == "zh_CN.UTF-8"
    assert env.log_level == "DEBUG"


@pytest.mark.parametrize("flag", ["", "0", "false", "no", "off"])
def test_environment_view_falsy_test_mode(tmp_path: Path, flag: str) -> None:
    env = EnvironmentView.from_environ({"HOME": str(tmp_path), "CCVM_TEST_MODE": flag})
    assert env.test_mode is False


def test_environment_view_falls_back_to_userprofile(tmp_path: Path) -> None:
    env = EnvironmentView.from_environ({"USERPROFILE": str(tmp_path)})
    assert env.home == tmp_path
