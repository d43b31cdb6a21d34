"""Provider profile storage.

Each profile lives in its own ``providers/<alias>.json`` file under the
configuration directory. Writes go through a temporary file in the same
directory followed by ``os.replace`` so readers only ever see a complete
file, and profile files are restricted to the owner because they hold API
keys. The small ``config.json`` next to the providers directory records the
default provider.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from ccvm.core.errors import AlreadyExistsError, ConfigError, FilesystemError, NotFoundError
from ccvm.core.paths import DirectoryContext
from ccvm.utils.log import get_logger
from ccvm.utils.output_utils import mask_secret
from ccvm.utils.platform import supports_posix_permissions


logger = get_logger()

ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
PROFILE_SUFFIX = ".json"
FILE_MODE = 0o600
DIR_MODE = 0o700
DEFAULT_TIMEOUT_MS = 30_000


def validate_alias(alias: Any) -> str:
    """Return ``alias`` if it is safe to use as a file name, else raise ConfigError."""
    if not isinstance(alias, str) or not ALIAS_PATTERN.match(alias):
        raise ConfigError(
            "Alias may only contain letters, digits, '_' and '-', up to 64 characters"
            f" (got {alias!r})"
        )
    return alias


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "profile"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


class ProviderProfile(BaseModel):
    """A named provider endpoint and its credentials."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    alias: str
    base_url: str = Field(
        validation_alias=AliasChoices("baseURL", "base_url", "apiUrl"),
        serialization_alias="baseURL",
    )
    api_key: str = Field(
        validation_alias=AliasChoices("apiKey", "api_key"),
        serialization_alias="apiKey",
        repr=False,
    )
    # Request timeout in milliseconds; DEFAULT_TIMEOUT_MS applies when unset.
    timeout: Optional[int] = None
    created_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )
    updated_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("updatedAt", "updated_at"),
        serialization_alias="updatedAt",
    )
    last_used: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("lastUsed", "last_used"),
        serialization_alias="lastUsed",
    )

    @field_validator("alias", mode="before")
    @classmethod
    def _check_alias(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not ALIAS_PATTERN.match(value):
                raise ValueError("may only contain letters, digits, '_' and '-' (max 64)")
        return value

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be a valid http or https URL")
        return value

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("timeout", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if isinstance(value, bool):
            raise ValueError("must be a number of milliseconds")
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValueError("must be a number of milliseconds")
            value = int(value)
        if isinstance(value, int) and value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @property
    def effective_timeout(self) -> int:
        return self.timeout if self.timeout is not None else DEFAULT_TIMEOUT_MS

    def to_file_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolConfig(BaseModel):
    """Tool-wide settings stored in config.json."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    default_provider: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("defaultProvider", "default_provider"),
        serialization_alias="defaultProvider",
    )


def _build_profile(**values: Any) -> ProviderProfile:
    try:
        return ProviderProfile(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid provider profile: {_validation_message(exc)}") from exc


def profile_path(ctx: DirectoryContext, alias: str) -> Path:
    """Return the file path for ``alias``, refusing anything outside providers_dir."""
    validate_alias(alias)
    path = ctx.providers_dir / f"{alias}{PROFILE_SUFFIX}"
    root = os.path.abspath(ctx.providers_dir)
    if os.path.dirname(os.path.abspath(path)) != root:
        raise ConfigError(f"Alias {alias!r} resolves outside the providers directory")
    return path


def _discard_temp(temp_path: str) -> None:
    try:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
    except OSError as exc:
        logger.warning(
            "[profiles] Failed to remove temporary file: %s: %s",
            type(exc).__name__,
            exc,
            extra={"path": temp_path},
        )


def _harden_permissions(path: Path) -> None:
    if not supports_posix_permissions():
        return
    try:
        path.chmod(FILE_MODE)
    except OSError as exc:
        logger.warning(
            "[profiles] Failed to restrict file permissions: %s: %s",
            type(exc).__name__,
            exc,
            extra={"path": str(path)},
        )


def _write_json_atomic(path: Path, payload: Any) -> None:
    serialized = json.dumps(payload, indent=2, ensure_ascii=False)
    try:
        fd, temp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.stem}.", suffix=".tmp"
        )
    except OSError as exc:
        raise FilesystemError.from_os_error("create a temporary file in", exc, path.parent) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(serialized)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
    except OSError as exc:
        raise FilesystemError.from_os_error("write", exc, path) from exc
    finally:
        _discard_temp(temp_path)
    _harden_permissions(path)


def _load_json_object(path: Path) -> dict[str, Any]:
    """Read a JSON object; FileNotFoundError is left to the caller."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{path} is not valid UTF-8 text", path=path) from exc
    except OSError as exc:
        raise FilesystemError.from_os_error("read", exc, path) from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}", path=path) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object", path=path)
    return data


def load_tool_config(ctx: DirectoryContext) -> ToolConfig:
    """Load config.json, returning defaults when it does not exist yet."""
    try:
        data = _load_json_object(ctx.config_file)
    except FileNotFoundError:
        return ToolConfig()
    try:
        return ToolConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid settings in {ctx.config_file}: {_validation_message(exc)}",
            path=ctx.config_file,
        ) from exc


def save_tool_config(ctx: DirectoryContext, config: ToolConfig) -> None:
    _write_json_atomic(ctx.config_file, config.model_dump(mode="json", by_alias=True))
    logger.debug(
        "[profiles] Saved tool config",
        extra={"path": str(ctx.config_file), "default_provider": config.default_provider},
    )


def init_store(ctx: DirectoryContext) -> None:
    """Create the configuration and providers directories if needed."""
    for directory in (ctx.config_dir, ctx.providers_dir):
        try:
            directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError.from_os_error("create directory", exc, directory) from exc
    if not ctx.config_file.exists():
        save_tool_config(ctx, ToolConfig())
    logger.debug(
        "[profiles] Store initialized",
        extra={"config_dir": str(ctx.config_dir), "test_mode": ctx.test_mode},
    )


def list_profiles(ctx: DirectoryContext) -> list[str]:
    """Return stored aliases in directory order (callers must not rely on ordering)."""
    aliases: list[str] = []
    try:
        with os.scandir(ctx.providers_dir) as entries:
            for entry in entries:
                name = entry.name
                if name.startswith(".") or not name.endswith(PROFILE_SUFFIX):
                    continue
                alias = name[: -len(PROFILE_SUFFIX)]
                if ALIAS_PATTERN.match(alias) and entry.is_file():
                    aliases.append(alias)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise FilesystemError.from_os_error("list", exc, ctx.providers_dir) from exc
    return aliases


def read_profile(ctx: DirectoryContext, alias: str) -> ProviderProfile:
    """Load a profile.

    Raises:
        NotFoundError: no file exists for ``alias``.
        ConfigError: the file is not a JSON object or lacks required fields.
        FilesystemError: the file exists but could not be read.
    """
    path = profile_path(ctx, alias)
    try:
        data = _load_json_object(path)
    except FileNotFoundError as exc:
        raise NotFoundError(alias, path=path) from exc
    try:
        profile = ProviderProfile.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid provider profile {path}: {_validation_message(exc)}", path=path
        ) from exc
    if profile.alias != alias:
        raise ConfigError(
            f"Profile file {path} is stored under alias '{profile.alias}'", path=path
        )
    return profile


def write_profile(ctx: DirectoryContext, profile: ProviderProfile) -> Path:
    """Atomically create or replace the file for ``profile``."""
    path = profile_path(ctx, profile.alias)
    _write_json_atomic(path, profile.to_file_payload())
    logger.debug(
        "[profiles] Saved provider profile",
        extra={
            "alias": profile.alias,
            "path": str(path),
            "api_key": mask_secret(profile.api_key),
        },
    )
    return path


def remove_profile(ctx: DirectoryContext, alias: str, missing_ok: bool = False) -> bool:
    """Delete a profile.

    Returns True when the removed alias was the default provider and the
    default has been cleared.
    """
    path = profile_path(ctx, alias)
    try:
        path.unlink()
    except FileNotFoundError as exc:
        if missing_ok:
            logger.debug("[profiles] Nothing to remove", extra={"alias": alias})
            return False
        raise NotFoundError(alias, path=path) from exc
    except OSError as exc:
        raise FilesystemError.from_os_error("remove", exc, path) from exc

    logger.debug("[profiles] Removed provider profile", extra={"alias": alias})

    config = load_tool_config(ctx)
    if config.default_provider != alias:
        return False
    config.default_provider = None
    save_tool_config(ctx, config)
    return True


def create_profile(
    ctx: DirectoryContext,
    alias: str,
    base_url: str,
    api_key: str,
    timeout: Optional[Any] = None,
    overwrite: bool = False,
) -> ProviderProfile:
    """Add a new profile; refuses to clobber an existing one unless ``overwrite``."""
    alias = validate_alias(alias.strip() if isinstance(alias, str) else alias)
    path = profile_path(ctx, alias)
    if not overwrite and path.exists():
        raise AlreadyExistsError(alias, path=path)
    profile = _build_profile(
        alias=alias,
        base_url=base_url,
        api_key=api_key,
        timeout=timeout,
        created_at=_timestamp(),
    )
    write_profile(ctx, profile)
    return profile


def update_profile(
    ctx: DirectoryContext,
    alias: str,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: Optional[Any] = None,
) -> ProviderProfile:
    """Read-modify-write an existing profile. A blank key keeps the stored one."""
    current = read_profile(ctx, alias)
    values = current.model_dump()
    if base_url is not None:
        values["base_url"] = base_url
    if api_key is not None and api_key.strip():
        values["api_key"] = api_key
    if timeout is not None:
        values["timeout"] = timeout
    values["updated_at"] = _timestamp()
    profile = _build_profile(**values)
    write_profile(ctx, profile)
    return profile


def get_default_provider(ctx: DirectoryContext) -> Optional[str]:
    return load_tool_config(ctx).default_provider


def set_default_provider(ctx: DirectoryContext, alias: str) -> ToolConfig:
    """Mark ``alias`` as the default provider and stamp its last-used time."""
    profile = read_profile(ctx, alias)
    config = load_tool_config(ctx)
    config.default_provider = alias
    save_tool_config(ctx, config)
    write_profile(ctx, profile.model_copy(update={"last_used": _timestamp()}))
    return config
