"""Tests for failure classification."""

from __future__ import annotations

import errno
import socket
from pathlib import Path

import pytest

from ccvm.core.classifier import ClassifiedError, ErrorCategory, classify, is_config_path
from ccvm.core.errors import ConfigError, FilesystemError, NotFoundError


class _FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


class _FakeHTTPStatusError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Client error '{status_code}'")
        self.response = _FakeResponse(status_code)


class ConnectError(Exception):
    """Stand-in for an HTTP client's connection error type."""


def test_dns_failure_is_network_with_context_preserved() -> None:
    exc = socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    result = classify(exc, "https://api.example.com")

    assert result.category is ErrorCategory.NETWORK
    assert result.context == "https://api.example.com"
    assert result.code == "ENOTFOUND"
    assert result.original_signal is exc


def test_http_401_is_auth() -> None:
    result = classify(401)

    assert result.category is ErrorCategory.AUTH
    assert result.code == "HTTP_401"


@pytest.mark.parametrize(
    "signal",
    [403, _FakeHTTPStatusError(401), "INVALID_API_KEY", "auth_failed", "Invalid credentials"],
)
def test_auth_signals(signal) -> None:
    assert classify(signal).category is ErrorCategory.AUTH


@pytest.mark.parametrize(
    "signal, code",
    [
        (ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"), "ECONNREFUSED"),
        (ConnectionRefusedError(), "ECONNREFUSED"),
        (ConnectionResetError(), "ECONNRESET"),
        (TimeoutError("The read operation timed out"), "TIMEOUT"),
        ("ENOTFOUND", "ENOTFOUND"),
        ("ETIMEDOUT", "ETIMEDOUT"),
        ("getaddrinfo ENOTFOUND api.example.com", "ENOTFOUND"),
        (OSError(errno.ENETUNREACH, "Network is unreachable"), "ENETUNREACH"),
        (ConnectError("[Errno -2] Name or service not known"), "NETWORK_ERROR"),
    ],
)
def test_network_signals(signal, code: str) -> None:
    result = classify(signal)
    assert result.category is ErrorCategory.NETWORK
    assert result.code == code


def test_network_takes_precedence_over_auth() -> None:
    result = classify("connection refused while sending invalid api key")
    assert result.category is ErrorCategory.NETWORK


def test_wrapped_network_cause_is_found() -> None:
    try:
        try:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        except socket.gaierror as inner:
            raise RuntimeError("request failed") from inner
    except RuntimeError as exc:
        outer = exc

    assert classify(outer).category is ErrorCategory.NETWORK


def test_missing_config_file_is_config(tmp_path: Path) -> None:
    config_dir = tmp_path / ".claude" / "ccvm"
    target = config_dir / "providers" / "acme.json"
    exc = FileNotFoundError(errno.ENOENT, "No such file or directory", str(target))

    result = classify(exc, str(target), config_dir=config_dir)

    assert result.category is ErrorCategory.CONFIG
    assert result.code == "ENOENT"


def test_missing_file_outside_config_is_filesystem(tmp_path: Path) -> None:
    exc = FileNotFoundError(errno.ENOENT, "No such file or directory")

    result = classify(exc, str(tmp_path / "notes.txt"), config_dir=tmp_path / "cfg")

    assert result.category is ErrorCategory.FILESYSTEM


def test_permission_denied_on_json_without_config_dir_is_config() -> None:
    exc = PermissionError(errno.EACCES, "Permission denied")
    assert classify(exc, "/home/me/.claude/ccvm/config.json").category is ErrorCategory.CONFIG


@pytest.mark.parametrize("word", ["timeout", "getaddrinfo", "unauthorized", "connection refused"])
def test_errno_beats_message_hints_in_config_paths(tmp_path: Path, word: str) -> None:
    config_dir = tmp_path / "cfg"
    target = config_dir / "providers" / word / "timeout.json"
    exc = PermissionError(errno.EACCES, "Permission denied", str(target))

    result = classify(exc, str(target), config_dir=config_dir)

    assert result.category is ErrorCategory.CONFIG
    assert result.code == "EACCES"


@pytest.mark.parametrize("word", ["timeout", "getaddrinfo", "unauthorized", "invalid api key"])
def test_errno_beats_message_hints_outside_config(tmp_path: Path, word: str) -> None:
    target = tmp_path / word / "data.bin"
    exc = FileNotFoundError(errno.ENOENT, "No such file or directory", str(target))

    result = classify(exc)

    assert result.category is ErrorCategory.FILESYSTEM
    assert result.code == "ENOENT"


def test_oserror_without_errno_still_uses_message_hints() -> None:
    assert classify(OSError("getaddrinfo failed")).category is ErrorCategory.NETWORK


def test_store_errors_classify_as_config() -> None:
    assert classify(NotFoundError("ghost")).category is ErrorCategory.CONFIG
    assert classify(NotFoundError("ghost")).code == "CONFIG_NOT_FOUND"
    # Field names such as "timeout" in the message must not look like network failures.
    invalid = ConfigError("Invalid provider profile: timeout: must be greater than zero")
    assert classify(invalid).category is ErrorCategory.CONFIG


def test_filesystem_error_uses_errno_and_path(tmp_path: Path) -> None:
    config_dir = tmp_path / "cfg"
    inside = FilesystemError("Failed to write", path=config_dir / "x.json", errno=errno.EACCES)
    outside = FilesystemError("Failed to write", path=tmp_path / "x.bin", errno=errno.ENOSPC)

    assert classify(inside, config_dir=config_dir).category is ErrorCategory.CONFIG
    assert classify(outside, config_dir=config_dir).category is ErrorCategory.FILESYSTEM
    assert classify(outside, config_dir=config_dir).code == "ENOSPC"


@pytest.mark.parametrize("signal", [ValueError("boom"), object(), None, 12.5, 200, "weird"])
def test_unrecognized_signals_are_unknown(signal) -> None:
    result = classify(signal, "op")

    assert result.category is ErrorCategory.UNKNOWN
    assert result.original_signal is signal
    assert result.context == "op"


def test_classify_is_deterministic() -> None:
    exc = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
    assert classify(exc, "ctx") == classify(exc, "ctx")


def test_already_classified_error_is_returned_unchanged() -> None:
    classified = ClassifiedError(ErrorCategory.AUTH, "x", "ctx", "AUTH_FAILED", "x")
    assert classify(classified, "other") is classified


def test_classify_never_raises_on_hostile_objects() -> None:
    class Hostile:
        def __getattr__(self, name):
            raise RuntimeError(name)

        def __str__(self):
            raise RuntimeError("no str")

    result = classify(Hostile())
    assert result.category is ErrorCategory.UNKNOWN


def test_is_config_path_rules(tmp_path: Path) -> None:
    assert is_config_path("settings.json")
    assert not is_config_path("https://api.example.com/v1.json")
    assert not is_config_path(None)
    assert is_config_path(tmp_path / "cfg" / "a.txt", tmp_path / "cfg")
    assert not is_config_path(tmp_path / "cfg-other" / "a.json", tmp_path / "cfg")
