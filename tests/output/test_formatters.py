"""Tests for the format_result dispatcher and OutputSettings."""

import json

import pytest
from pydantic import ValidationError

from gtdctl.output.formatters import OutputSettings, format_result
from gtdctl.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="NOT_FOUND", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False

    def test_frozen(self) -> None:
        s = OutputSettings(json_output=True)
        with pytest.raises(ValidationError):
            s.quiet = True  # type: ignore[misc]


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        result = _ok("create_task", path="/v/tasks/a.md")
        data = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert data["ok"] is True
        assert data["op"] == "create_task"
        assert data["data"]["path"] == "/v/tasks/a.md"
        assert data["warnings"] == []

    def test_json_mode_error(self) -> None:
        data = json.loads(format_result(_err("show", "Bad"), settings=OutputSettings(json_output=True)))
        assert data["ok"] is False
        assert data["error"]["code"] == "NOT_FOUND"
        assert data["error"]["message"] == "Bad"

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True


class TestFormatResultHuman:
    def test_default_settings(self) -> None:
        assert "OK" in format_result(_ok("check_like", value=1))

    def test_quiet(self) -> None:
        output = format_result(_ok("update", path="/v/a.md"), settings=OutputSettings(quiet=True))
        assert output == "/v/a.md"

    def test_error(self) -> None:
        output = format_result(_err("show", "no record"))
        assert "ERROR" in output
        assert "no record" in output
