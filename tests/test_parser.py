"""
查询块解析（parse_query）单元测试。
"""

from __future__ import annotations

import logging

import pytest

from ncquery.models import FilterCriterion
from ncquery.parser import parse_query

from tests.config import PHOTOS_QUERY


def test_header_only_has_no_filter_section() -> None:
    """只有头部时没有 filter 键。"""
    params = parse_query("command: List Files\nfolder: Documents\nformat: {{name}}")
    assert params.command == "List Files"
    assert params.folder == "Documents"
    assert params.format == "{{name}}"
    assert params.filters is None
    assert "filter" not in params.to_dict()


def test_full_query_block() -> None:
    params = parse_query(PHOTOS_QUERY)
    assert params.command == "List Files"
    assert params.folder == "Photos"
    assert params.filters == [FilterCriterion("extension", "jpg, png")]
    assert params.format == "{{name}} ({{sizekb}} KB)"


def test_filter_criteria_keep_source_order() -> None:
    text = "filter:\n    - type: file\n    - minsize: 10\n\t- owner: alice\n- tag: work"
    params = parse_query(text)
    assert [c.key for c in params.filters] == ["type", "minsize", "owner", "tag"]
    assert params.filters[2] == FilterCriterion("owner", "alice")


def test_empty_filter_section_is_empty_list() -> None:
    params = parse_query("command: List Files\nfilter:\nformat: {{ext}}")
    assert params.filters == []
    assert params.format == "{{ext}}"
    assert params.to_dict()["filter"] == []


def test_filter_line_trailing_value_is_ignored() -> None:
    params = parse_query("filter: something\n  - ext: pdf")
    assert params.filters == [FilterCriterion("ext", "pdf")]
    assert "filter" not in params.extra


def test_unindented_line_exits_filter_section() -> None:
    """未缩进、不以 - 开头的行结束 filter 段，并按头部行处理。"""
    text = "filter:\n  - extension: md\nformat: {{name}}\n  - type: file"
    params = parse_query(text)
    assert params.filters == [FilterCriterion("extension", "md")]
    assert params.format == "{{name}}"


def test_indented_non_criterion_line_is_ignored() -> None:
    text = "filter:\n    nonsense here\n    other: value\n    - type: folder"
    params = parse_query(text)
    assert params.filters == [FilterCriterion("type", "folder")]
    assert params.extra == {}


def test_criterion_value_is_trimmed() -> None:
    params = parse_query("filter:\n  -   mimetype:    image/png   ")
    assert params.filters == [FilterCriterion("mimetype", "image/png")]


def test_value_keeps_colons_after_first() -> None:
    """值中的冒号（如 URL、时间）原样保留。"""
    params = parse_query("link: https://cloud.example.com:8443/x\nformat: {{name}} @ 10:30")
    assert params.get("link") == "https://cloud.example.com:8443/x"
    assert params.format == "{{name}} @ 10:30"


def test_semicolon_fallback() -> None:
    params = parse_query("command; List Files\nfolder;Photos")
    assert params.command == "List Files"
    assert params.folder == "Photos"


def test_later_keys_overwrite_earlier() -> None:
    params = parse_query("folder: A\nfolder: B\ncustom: 1\ncustom: 2")
    assert params.folder == "B"
    assert params.get("custom") == "2"


def test_second_filter_section_resets_list() -> None:
    params = parse_query("filter:\n  - type: file\ncommand: List Files\nfilter:\n  - type: folder")
    assert params.filters == [FilterCriterion("type", "folder")]


@pytest.mark.parametrize(
    "line",
    ["just text", ": no key", "key:", "key:   ", "   ", ""],
)
def test_malformed_header_lines_are_skipped(line: str) -> None:
    params = parse_query(f"command: List Files\n{line}")
    assert params.to_dict() == {"command": "List Files"}


def test_keys_are_case_sensitive() -> None:
    params = parse_query("Command: List Files")
    assert params.command is None
    assert params.get("Command") == "List Files"


def test_list_style_header() -> None:
    params = parse_query("list-style: none")
    assert params.list_style == "none"
    assert params.get("list-style") == "none"
    assert params.no_bullets


def test_ignored_lines_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="ncquery.parser"):
        parse_query("garbage\nfilter:\n   junk")
    messages = [r.getMessage() for r in caplog.records]
    assert any("garbage" in m for m in messages)
    assert any("junk" in m for m in messages)


def test_windows_line_endings() -> None:
    params = parse_query("command: List Files\r\nfolder: Docs\r\n")
    assert params.command == "List Files"
    assert params.folder == "Docs"
