"""Map raw failure signals onto a small set of reportable categories.

A signal may be an exception, a string error code (``"ENOTFOUND"``), an
error message, or an HTTP status. Rules are checked in a fixed order and
the first match wins: network, auth, config, filesystem, then unknown.
"""

from __future__ import annotations

import errno
import os
import socket
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from ccvm.core.errors import CcvmError, ConfigError, FilesystemError, NotFoundError


class ErrorCategory(str, Enum):
    """Reporting categories; not raised, only rendered."""

    NETWORK = "network"
    AUTH = "auth"
    CONFIG = "config"
    FILESYSTEM = "filesystem"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedError:
    """A raw failure signal together with its category."""

    category: ErrorCategory
    original_signal: Any
    context: Any = None
    code: str = "UNKNOWN"
    message: str = ""


_NETWORK_CODES = frozenset(
    {
        "ENOTFOUND",
        "EAI_AGAIN",
        "EAI_NONAME",
        "ECONNREFUSED",
        "ECONNRESET",
        "ECONNABORTED",
        "ETIMEDOUT",
        "EHOSTUNREACH",
        "ENETUNREACH",
        "ENETDOWN",
        "TIMEOUT",
        "NETWORK_ERROR",
    }
)
_NETWORK_HINTS = (
    ("name or service not known", "ENOTFOUND"),
    ("nodename nor servname", "ENOTFOUND"),
    ("temporary failure in name resolution", "ENOTFOUND"),
    ("could not resolve host", "ENOTFOUND"),
    ("getaddrinfo", "ENOTFOUND"),
    ("connection refused", "ECONNREFUSED"),
    ("connection reset", "ECONNRESET"),
    ("connection aborted", "ECONNABORTED"),
    ("network is unreachable", "ENETUNREACH"),
    ("no route to host", "EHOSTUNREACH"),
    ("timed out", "TIMEOUT"),
    ("timeout", "TIMEOUT"),
)
# HTTP client exceptions recognized by class name so the clients stay optional.
_NETWORK_EXCEPTION_NAMES = frozenset(
    {
        "ConnectError",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
        "PoolTimeout",
        "TimeoutException",
        "NetworkError",
        "APIConnectionError",
        "APITimeoutError",
    }
)

_AUTH_STATUSES = frozenset({401, 403})
_AUTH_CODES = frozenset(
    {"INVALID_API_KEY", "AUTH_FAILED", "UNAUTHORIZED", "FORBIDDEN", "INVALID_CREDENTIALS"}
)
_AUTH_HINTS = (
    "invalid credentials",
    "invalid api key",
    "invalid x-api-key",
    "incorrect api key",
    "unauthorized",
    "authentication failed",
)

_CONFIG_FS_CODES = frozenset({"ENOENT", "ENOTDIR", "EACCES", "EPERM"})
_FS_CODES = _CONFIG_FS_CODES | frozenset(
    {
        "EISDIR",
        "EEXIST",
        "ENOTEMPTY",
        "ENOSPC",
        "EROFS",
        "EIO",
        "EMFILE",
        "ENFILE",
        "ENAMETOOLONG",
        "EBUSY",
        "EXDEV",
        "ELOOP",
        "EDQUOT",
    }
)

_MAX_CHAIN_DEPTH = 5


def _attr(obj: Any, name: str) -> Any:
    try:
        return getattr(obj, name, None)
    except Exception:
        return None


def _describe(signal: Any) -> str:
    if isinstance(signal, str):
        return signal
    if isinstance(signal, int) and not isinstance(signal, bool):
        return f"HTTP {signal}"
    try:
        return str(signal)
    except Exception:
        return object.__repr__(signal)


def _hint_text(signal: Any) -> Optional[str]:
    """Lowercased text to scan for message hints, or None when hints do not apply."""
    if isinstance(signal, str):
        return signal.lower()
    # An errno is authoritative, and str() of an OSError embeds the filename.
    if isinstance(signal, OSError) and isinstance(signal.errno, int):
        return None
    if isinstance(signal, BaseException):
        return _describe(signal).lower()
    return None


def _chain(signal: Any) -> Iterator[Any]:
    """Yield the signal and the exceptions it wraps."""
    seen: set[int] = set()
    current = signal
    for _ in range(_MAX_CHAIN_DEPTH):
        if current is None or id(current) in seen:
            return
        seen.add(id(current))
        yield current
        # Store errors already carry everything needed from their cause.
        if not isinstance(current, BaseException) or isinstance(current, CcvmError):
            return
        nxt = current.__cause__ or current.__context__
        reason = _attr(current, "reason")
        if nxt is None and isinstance(reason, BaseException):
            nxt = reason
        current = nxt


def _string_code(signal: Any) -> Optional[str]:
    if not isinstance(signal, str):
        return None
    candidate = signal.strip().upper()
    if candidate and candidate.replace("_", "").isalnum() and " " not in candidate:
        return candidate
    return None


def _errno_name(signal: Any) -> Optional[str]:
    if isinstance(signal, FilesystemError) and signal.errno is not None:
        return errno.errorcode.get(signal.errno)
    if isinstance(signal, OSError) and isinstance(signal.errno, int):
        return errno.errorcode.get(signal.errno)
    code = _attr(signal, "code")
    if isinstance(code, str) and code.isupper():
        return code
    return None


def _http_status(signal: Any) -> Optional[int]:
    if isinstance(signal, bool):
        return None
    if isinstance(signal, int):
        return signal if 100 <= signal <= 599 else None
    for candidate in (
        _attr(signal, "status_code"),
        _attr(signal, "status"),
        _attr(_attr(signal, "response"), "status_code"),
    ):
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def _network_code(signal: Any) -> Optional[str]:
    if isinstance(signal, CcvmError):
        return None
    if isinstance(signal, socket.gaierror):
        return "ENOTFOUND"
    name = _errno_name(signal) or _string_code(signal)
    if name in _NETWORK_CODES:
        return name
    if isinstance(signal, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(signal, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(signal, ConnectionAbortedError):
        return "ECONNABORTED"
    if isinstance(signal, (TimeoutError, socket.timeout)):
        return "TIMEOUT"
    if isinstance(signal, ConnectionError):
        return "NETWORK_ERROR"
    if isinstance(signal, BaseException) and any(
        cls.__name__ in _NETWORK_EXCEPTION_NAMES for cls in type(signal).__mro__
    ):
        return "TIMEOUT" if "Timeout" in type(signal).__name__ else "NETWORK_ERROR"
    lowered = _hint_text(signal)
    if lowered is not None:
        for hint, code in _NETWORK_HINTS:
            if hint in lowered:
                return code
    return None


def _auth_code(signal: Any) -> Optional[str]:
    if isinstance(signal, CcvmError):
        return None
    status = _http_status(signal)
    if status in _AUTH_STATUSES:
        return f"HTTP_{status}"
    name = _string_code(signal) or _errno_name(signal)
    if name in _AUTH_CODES:
        return name
    lowered = _hint_text(signal)
    if lowered is not None and any(hint in lowered for hint in _AUTH_HINTS):
        return "AUTH_FAILED"
    return None


def is_config_path(target: Any, config_dir: Optional[Union[str, Path]] = None) -> bool:
    """Whether ``target`` names a file inside the configuration tree.

    Without ``config_dir`` any local ``.json`` path counts as configuration.
    """
    if not isinstance(target, (str, Path)) or not str(target):
        return False
    text = str(target)
    if "://" in text:
        return False
    if config_dir is None:
        return text.lower().endswith(".json")
    root = os.path.abspath(os.path.expanduser(str(config_dir)))
    candidate = os.path.abspath(os.path.expanduser(text))
    return candidate == root or candidate.startswith(root + os.sep)


def _signal_path(signal: Any) -> Any:
    if isinstance(signal, CcvmError):
        return signal.path
    if isinstance(signal, OSError):
        return signal.filename
    return None


def _config_code(signal: Any, context: Any, config_dir: Any) -> Optional[str]:
    if isinstance(signal, (ConfigError, NotFoundError)):
        return signal.error_code
    name = _errno_name(signal) or _string_code(signal)
    if name not in _CONFIG_FS_CODES:
        return None
    target = context if context is not None else _signal_path(signal)
    return name if is_config_path(target, config_dir) else None


def _filesystem_code(signal: Any) -> Optional[str]:
    name = _errno_name(signal) or _string_code(signal)
    if name in _FS_CODES:
        return name
    if isinstance(signal, FilesystemError):
        return signal.error_code
    return None


def _first(signal: Any, probe: Any) -> Optional[str]:
    for candidate in _chain(signal):
        code = probe(candidate)
        if code:
            return code
    return None


def classify(
    signal: Any,
    context: Any = None,
    *,
    config_dir: Optional[Union[str, Path]] = None,
) -> ClassifiedError:
    """Classify a raw failure signal. Never raises.

    Args:
        signal: Exception, error-code string, message, HTTP status, or an
            already classified error (returned unchanged).
        context: What was being attempted, such as a URL or file path. Kept verbatim.
        config_dir: Configuration root used to recognize config paths.
    """
    if isinstance(signal, ClassifiedError):
        return signal

    message = _describe(signal)
    try:
        code = _first(signal, _network_code)
        if code:
            return ClassifiedError(ErrorCategory.NETWORK, signal, context, code, message)

        code = _first(signal, _auth_code)
        if code:
            return ClassifiedError(ErrorCategory.AUTH, signal, context, code, message)

        code = _first(signal, lambda item: _config_code(item, context, config_dir))
        if code:
            return ClassifiedError(ErrorCategory.CONFIG, signal, context, code, message)

        code = _first(signal, _filesystem_code)
        if code:
            return ClassifiedError(ErrorCategory.FILESYSTEM, signal, context, code, message)

        code = _string_code(signal) or _errno_name(signal) or "UNKNOWN"
    except Exception:
        code = "UNKNOWN"
    return ClassifiedError(ErrorCategory.UNKNOWN, signal, context, code, message)
