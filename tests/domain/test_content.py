"""Tests for record models and frontmatter parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from gtdctl.domain.content import (
    AreaRecord,
    ProjectRecord,
    RawTimestamp,
    TaskRecord,
    detect_sequence_offset,
    get_record_model,
    load_document,
    parse_frontmatter_block,
    parse_record,
    render_document,
    split_frontmatter,
)
from gtdctl.domain.errors import ErrorCode, RecordParseError, RecordValidationError
from gtdctl.domain.types import RecordKind

TASK_PATH = Path("/vault/tasks/write-report.md")


def _task(frontmatter: str, body: str = "") -> TaskRecord:
    record = parse_record(RecordKind.TASK, f"---\n{frontmatter}---\n{body}", path=TASK_PATH)
    assert isinstance(record, TaskRecord)
    return record


# ---------------------------------------------------------------------------
# split_frontmatter / parse_frontmatter_block
# ---------------------------------------------------------------------------


class TestSplitFrontmatter:
    def test_basic_split(self) -> None:
        block, body = split_frontmatter("---\ntitle: X\nstatus: ready\n---\nBody\n")
        assert block == "title: X\nstatus: ready\n"
        assert body == "Body\n"

    def test_body_kept_verbatim(self) -> None:
        body = "\n# Heading\r\n\n  indented\n\n\n"
        _block, out = split_frontmatter(f"---\ntitle: X\n---\n{body}")
        assert out == body

    def test_byte_order_mark_ignored(self) -> None:
        block, _body = split_frontmatter("\ufeff---\ntitle: X\n---\n")
        assert block == "title: X\n"

    def test_missing_block(self) -> None:
        with pytest.raises(RecordParseError, match="no frontmatter"):
            split_frontmatter("Just text.\n")

    def test_empty_file(self) -> None:
        with pytest.raises(RecordParseError):
            split_frontmatter("")

    def test_unterminated_block(self) -> None:
        with pytest.raises(RecordParseError, match="not closed"):
            split_frontmatter("---\ntitle: X\nBody without closing\n")

    def test_oversized_block(self) -> None:
        content = "---\n" + "note: " + "x" * 200 + "\n---\n"
        with pytest.raises(RecordParseError, match="exceeds"):
            split_frontmatter(content, max_frontmatter_bytes=100)

    def test_empty_block(self) -> None:
        block, body = split_frontmatter("---\n---\nBody")
        assert block == ""
        assert body == "Body"


class TestParseFrontmatterBlock:
    def test_dates_stay_text(self) -> None:
        fm = parse_frontmatter_block("due: 2025-01-15\ncreated-at: 2025-01-15T10:00:00Z\n")
        assert isinstance(fm["due"], RawTimestamp)
        assert fm["due"] == "2025-01-15"
        assert fm["created-at"] == "2025-01-15T10:00:00Z"

    def test_key_order_preserved(self) -> None:
        fm = parse_frontmatter_block("zeta: 1\nalpha: 2\nmid: 3\n")
        assert list(fm) == ["zeta", "alpha", "mid"]

    def test_empty_block_is_empty_mapping(self) -> None:
        assert dict(parse_frontmatter_block("")) == {}

    def test_malformed_yaml(self) -> None:
        with pytest.raises(RecordParseError, match="malformed YAML"):
            parse_frontmatter_block("title: [unclosed\n")

    def test_top_level_list_rejected(self) -> None:
        with pytest.raises(RecordParseError, match="mapping"):
            parse_frontmatter_block("- a\n- b\n")


class TestRenderDocument:
    def test_round_trip_is_identical(self) -> None:
        content = (
            "---\n"
            "title: Write report\n"
            "status: ready\n"
            "due: 2025-01-15\n"
            "priority: high\n"
            'area: "[[Work]]"\n'
            "---\n"
            "\n"
            "Body text\n"
        )
        assert load_document(content).render() == content

    def test_datetime_not_rewritten(self) -> None:
        content = "---\ntitle: X\nupdated-at: 2025-01-15 09:30:00\n---\n"
        assert load_document(content).render() == content

    def test_empty_frontmatter(self) -> None:
        assert render_document({}, "Body") == "---\n---\nBody"

    @pytest.mark.parametrize(
        "block",
        [
            "title: X\ntags:\n- a\n- b\n",
            "title: X\ntags:\n  - a\n  - b\n",
            "title: X\ntags:\n    - a\n",
        ],
    )
    def test_list_indent_round_trips(self, block: str) -> None:
        content = f"---\n{block}---\n"
        assert load_document(content).render() == content


class TestDetectSequenceOffset:
    def test_zero_indent(self) -> None:
        assert detect_sequence_offset("title: X\ntags:\n- a\n") == 0

    def test_indented(self) -> None:
        assert detect_sequence_offset("tags:  # labels\n  - a\n") == 2

    def test_nested_key(self) -> None:
        assert detect_sequence_offset("meta:\n  links:\n  - a\n") == 0

    def test_no_block_list(self) -> None:
        assert detect_sequence_offset("title: X\ntags: [a, b]\n") is None


# ---------------------------------------------------------------------------
# Typed records
# ---------------------------------------------------------------------------


class TestTaskRecord:
    def test_parse_fields(self) -> None:
        task = _task(
            "title: Write report\n"
            "status: in-progress\n"
            "due: 2025-01-15\n"
            'projects: ["[[Q1 Review]]"]\n'
            'area: "[[Work]]"\n',
            "\nDraft the summary.\n",
        )
        assert task.title == "Write report"
        assert task.status == "in-progress"
        assert task.due == "2025-01-15"
        assert task.project == "[[Q1 Review]]"
        assert task.project_name == "Q1 Review"
        assert task.area_name == "Work"
        assert task.body == "Draft the summary."
        assert task.path == TASK_PATH

    def test_unknown_keys_go_to_extra(self) -> None:
        task = _task("title: X\nstatus: ready\npriority: high\ntags:\n  - a\n  - b\n")
        assert task.extra == {"priority": "high", "tags": ["a", "b"]}
        assert task.get_value("priority") == "high"

    def test_single_project_string_accepted(self) -> None:
        task = _task("title: X\nstatus: ready\nprojects: Q1\n")
        assert task.projects == ["Q1"]

    def test_missing_status_is_parse_failure(self) -> None:
        with pytest.raises(RecordParseError) as exc_info:
            _task("title: X\n")
        assert exc_info.value.code == ErrorCode.PARSE_FAILED
        assert exc_info.value.field == "status"
        assert exc_info.value.path == TASK_PATH

    def test_missing_title_is_parse_failure(self) -> None:
        with pytest.raises(RecordParseError) as exc_info:
            _task("status: ready\n")
        assert exc_info.value.code == ErrorCode.PARSE_FAILED
        assert exc_info.value.field == "title"

    def test_unknown_status_is_validation_failure(self) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _task("title: X\nstatus: someday\n")
        assert exc_info.value.code == ErrorCode.VALIDATION_FAILED
        assert exc_info.value.field == "status"

    def test_bad_date_is_validation_failure(self) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            _task("title: X\nstatus: ready\ndue: next tuesday\n")
        assert exc_info.value.field == "due"

    def test_empty_title_rejected(self) -> None:
        with pytest.raises(RecordValidationError):
            _task("title: '  '\nstatus: ready\n")

    def test_numeric_title_becomes_text(self) -> None:
        assert _task("title: 2025\nstatus: ready\n").title == "2025"

    def test_get_value_by_frontmatter_key(self) -> None:
        task = _task("title: X\nstatus: ready\ndefer-until: 2025-02-01\n")
        assert task.get_value("defer-until") == "2025-02-01"
        assert task.get_value("defer_until") == "2025-02-01"
        assert task.get_value("nope") is None
        value = task.date_value("defer-until")
        assert value is not None and value.is_date_only

    def test_validation_warnings(self) -> None:
        task = _task("title: X\nstatus: done\nprojects:\n  - A\n  - B\n")
        warnings = task.validation_warnings()
        assert any("2 entries" in w for w in warnings)
        assert any("completed-at" in w for w in warnings)

    def test_to_dict_uses_frontmatter_keys(self) -> None:
        task = _task("title: X\nstatus: ready\ndefer-until: 2025-02-01\n", "Body\n")
        data = task.to_dict()
        assert data["kind"] == "task"
        assert data["defer-until"] == "2025-02-01"
        assert data["path"] == str(TASK_PATH)
        assert "body" not in data
        assert task.to_dict(include_body=True)["body"] == "Body"

    def test_records_are_frozen(self) -> None:
        task = _task("title: X\nstatus: ready\n")
        with pytest.raises(ValueError):
            task.title = "Y"  # type: ignore[misc]

    def test_is_archived(self) -> None:
        content = "---\ntitle: X\nstatus: done\n---\n"
        archived = parse_record(RecordKind.TASK, content, path=Path("/v/tasks/archive/x.md"))
        assert archived.is_archived
        assert not _task("title: X\nstatus: ready\n").is_archived


class TestProjectAndAreaRecords:
    def test_project_status_optional(self) -> None:
        project = parse_record(
            RecordKind.PROJECT,
            '---\ntitle: Q1\narea: "[[Work]]"\nend-date: 2025-03-31\n---\n',
            path=Path("/v/projects/q1.md"),
        )
        assert isinstance(project, ProjectRecord)
        assert project.status is None
        assert project.area_name == "Work"
        assert project.end_date == "2025-03-31"

    def test_project_blocked_by_list(self) -> None:
        project = parse_record(
            RecordKind.PROJECT,
            "---\ntitle: Q2\nstatus: blocked\nblocked-by:\n  - '[[Q1]]'\n---\n",
            path=Path("/v/projects/q2.md"),
        )
        assert project.get_value("blocked-by") == ["[[Q1]]"]

    def test_project_rejects_task_status(self) -> None:
        with pytest.raises(RecordValidationError):
            parse_record(
                RecordKind.PROJECT,
                "---\ntitle: Q1\nstatus: inbox\n---\n",
                path=Path("/v/projects/q1.md"),
            )

    def test_area_type_alias(self) -> None:
        area = parse_record(
            RecordKind.AREA,
            "---\ntitle: Work\nstatus: active\ntype: professional\n---\n",
            path=Path("/v/areas/work.md"),
        )
        assert isinstance(area, AreaRecord)
        assert area.area_type == "professional"
        assert area.to_dict()["type"] == "professional"

    def test_model_lookup(self) -> None:
        assert get_record_model("task") is TaskRecord
        assert get_record_model(RecordKind.AREA) is AreaRecord
