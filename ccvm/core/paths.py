"""Directory resolution for ccvm.

Every store operation receives an explicit :class:`DirectoryContext` built
from an :class:`EnvironmentView`, so nothing reads ``HOME`` behind the
caller's back. When test mode is on, the home directory must come from an
injected override; falling back to the real home is refused.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from ccvm.core.errors import ConfigError
from ccvm.utils.log import get_logger


logger = get_logger()

APP_DIR_NAME = ".claude"
TOOL_DIR_NAME = "ccvm"
PROVIDERS_DIR_NAME = "providers"
CONFIG_FILE_NAME = "config.json"
LOGS_DIR_NAME = "logs"

_TRUTHY = {"1", "true", "yes", "on"}


def _is_truthy(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in _TRUTHY


class EnvironmentView(BaseModel):
    """The slice of the process environment ccvm depends on."""

    model_config = {"frozen": True}

    home: Path
    test_mode: bool = False
    test_home: Optional[Path] = None
    locale: str = "en"
    log_level: str = Field(default="WARNING")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper() or "WARNING"

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvironmentView":
        """Build a view from ``os.environ`` (or any mapping with the same keys)."""
        env = os.environ if environ is None else environ
        home = env.get("HOME") or env.get("USERPROFILE")
        test_home = env.get("CCVM_TEST_HOME")
        return cls(
            home=Path(home) if home else Path.home(),
            test_mode=_is_truthy(env.get("CCVM_TEST_MODE")),
            test_home=Path(test_home) if test_home else None,
            locale=env.get("CCVM_LANG") or env.get("LANG") or "en",
            log_level=env.get("CCVM_LOG_LEVEL") or "WARNING",
        )


@dataclass(frozen=True)
class DirectoryContext:
    """Resolved locations of the configuration tree."""

    home_dir: Path
    test_mode: bool = False

    @property
    def config_dir(self) -> Path:
        return self.home_dir / APP_DIR_NAME / TOOL_DIR_NAME

    @property
    def providers_dir(self) -> Path:
        return self.config_dir / PROVIDERS_DIR_NAME

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.config_dir / LOGS_DIR_NAME


def _same_directory(left: Path, right: Path) -> bool:
    # Lexical comparison only; resolving symlinks would hit the disk.
    return os.path.abspath(left.expanduser()) == os.path.abspath(right.expanduser())


def resolve_context(env: EnvironmentView) -> DirectoryContext:
    """Derive the directory context for ``env`` without touching the disk.

    Raises:
        ConfigError: test mode is on and no isolated home was injected, or the
            injected home is the real home directory.
    """
    if env.test_mode:
        if env.test_home is None:
            raise ConfigError("test mode requires an isolated home")
        if _same_directory(env.test_home, env.home):
            raise ConfigError(
                "test mode requires an isolated home, not the real home directory",
                path=env.test_home,
            )
        ctx = DirectoryContext(home_dir=env.test_home.expanduser(), test_mode=True)
    else:
        ctx = DirectoryContext(home_dir=env.home.expanduser())

    logger.debug(
        "[paths] Resolved directory context",
        extra={"config_dir": str(ctx.config_dir), "test_mode": ctx.test_mode},
    )
    return ctx
