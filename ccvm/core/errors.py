"""Error types raised by the profile store and path resolver."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class CcvmError(Exception):
    """Base error with a stable error code."""

    def __init__(
        self,
        error_code: str,
        message: str,
        *,
        path: Optional[Union[str, Path]] = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.path = str(path) if path is not None else None


class NotFoundError(CcvmError):
    """Requested provider alias does not exist."""

    def __init__(self, alias: str, *, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__("CONFIG_NOT_FOUND", f"Provider '{alias}' not found", path=path)
        self.alias = alias


class ConfigError(CcvmError):
    """Malformed profile data or an unsafe configuration."""

    def __init__(self, message: str, *, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__("INVALID_CONFIG", message, path=path)


class AlreadyExistsError(ConfigError):
    """A profile with the same alias is already stored."""

    def __init__(self, alias: str, *, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(f"Provider '{alias}' already exists", path=path)
        self.error_code = "CONFIG_EXISTS"
        self.alias = alias


class FilesystemError(CcvmError):
    """I/O failure while touching the configuration directory."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Union[str, Path]] = None,
        errno: Optional[int] = None,
    ) -> None:
        super().__init__("FILESYSTEM_ERROR", message, path=path)
        self.errno = errno

    @classmethod
    def from_os_error(cls, action: str, exc: OSError, path: Union[str, Path]) -> "FilesystemError":
        reason = exc.strerror or str(exc)
        return cls(f"Failed to {action} {path}: {reason}", path=path, errno=exc.errno)
