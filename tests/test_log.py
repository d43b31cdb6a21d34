"""Tests for ccvm logging helpers."""

import json
import logging

from ccvm.utils.log import CcvmLogger, StructuredFormatter


def test_structured_formatter_appends_extras() -> None:
    formatter = StructuredFormatter("%(message)s")
    record = logging.makeLogRecord({"msg": "hello", "category": "network", "code": "ENOTFOUND"})

    message, _, extras = formatter.format(record).partition(" | ")

    assert message == "hello"
    assert json.loads(extras) == {"category": "network", "code": "ENOTFOUND"}


def test_structured_formatter_without_extras_is_plain() -> None:
    formatter = StructuredFormatter("%(message)s")
    assert formatter.format(logging.makeLogRecord({"msg": "plain"})) == "plain"


def test_structured_formatter_uses_utc_iso_timestamps() -> None:
    formatter = StructuredFormatter("%(asctime)s")
    record = logging.makeLogRecord({"msg": "x", "created": 0.0, "msecs": 0.0})

    assert formatter.format(record) == "1970-01-01T00:00:00.000Z"


def test_file_handler_writes_debug_records(tmp_path) -> None:
    logger = CcvmLogger(name="ccvm.test-file", log_dir=tmp_path, level_name="ERROR")
    try:
        logger.debug("[profiles] Wrote provider profile", extra={"alias": "acme"})
    finally:
        logger.detach_file_handler()

    (log_file,) = tmp_path.glob("ccvm_*.log")
    content = log_file.read_text(encoding="utf-8")
    assert "[DEBUG] [profiles] Wrote provider profile" in content
    assert '"alias": "acme"' in content


def test_detach_without_file_handler_is_noop() -> None:
    logger = CcvmLogger(name="ccvm.test-detach")
    logger.detach_file_handler()
    assert not any(isinstance(h, logging.FileHandler) for h in logger.logger.handlers)
