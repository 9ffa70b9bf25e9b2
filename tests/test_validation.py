"""Tests for bytecode validation and error classification."""

from __future__ import annotations

import logging

import pytest

from medal_server.decompiler import DEFAULT_ENCODE_KEY
from medal_server.server import (
    BadRequest,
    InternalError,
    classify_error,
    parse_encode_key,
    run_decompiler,
    validate_bytecode,
)
from tests.fakes import RecordingDecompiler


class TestValidateBytecode:
    def test_empty_payload(self) -> None:
        with pytest.raises(BadRequest, match="No bytecode provided"):
            validate_bytecode(b"")

    @pytest.mark.parametrize("payload", [b"\x01", b"\x01\x02", b"\x01\x02\x03"])
    def test_short_payload(self, payload: bytes) -> None:
        with pytest.raises(BadRequest, match=r"Bytecode too short \(minimum 4 bytes\)"):
            validate_bytecode(payload)

    def test_minimum_length_passes(self) -> None:
        assert validate_bytecode(b"\x00\x01\x02\x03") is None


class TestParseEncodeKey:
    def test_missing_uses_default(self) -> None:
        assert parse_encode_key(None) == DEFAULT_ENCODE_KEY == 203

    @pytest.mark.parametrize("value,expected", [("0", 0), ("77", 77), ("255", 255), ("+77", 77)])
    def test_valid(self, value: str, expected: int) -> None:
        assert parse_encode_key(value) == expected

    @pytest.mark.parametrize("value", ["256", "-1", "abc", "", "1_0", " 77", "77 ", "\u0667\u0667", "0x4d", "1000"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(BadRequest, match="Invalid encode_key"):
            parse_encode_key(value)


class TestClassifyError:
    def test_bad_request_is_not_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            assert classify_error(BadRequest("nope")) == (400, "nope")
        assert caplog.records == []

    def test_internal_error_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            assert classify_error(InternalError("lifter crashed")) == (500, "lifter crashed")
        assert [r.getMessage() for r in caplog.records] == ["lifter crashed"]


class TestRunDecompiler:
    def test_returns_result_verbatim(self) -> None:
        decompiler = RecordingDecompiler(result="  return 1  \n")
        assert run_decompiler(decompiler, b"abcd", 7, legacy=False) == "  return 1  \n"
        assert decompiler.calls == [(b"abcd", 7, False)]

    def test_failure_becomes_internal_error(self) -> None:
        decompiler = RecordingDecompiler(error="bad opcode")
        with pytest.raises(InternalError, match="bad opcode"):
            run_decompiler(decompiler, b"abcd", 203, legacy=True)

    @pytest.mark.parametrize("result", ["", "   ", "\n\t\n"])
    def test_blank_result_is_internal_error(self, result: str) -> None:
        decompiler = RecordingDecompiler(result=result)
        with pytest.raises(InternalError, match="Empty decompilation result"):
            run_decompiler(decompiler, b"abcd", 203, legacy=False)
