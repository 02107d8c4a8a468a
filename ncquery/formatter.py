"""
按模板输出 FileRecord，如 ``{{name}} ({{sizekb}} KB, {{date}})``。

占位符在原模板上一次性替换，替换结果不会再次展开；未知占位符原样保留。
"""

from __future__ import annotations

import re
from typing import Callable

from ncquery.models import FileRecord

FAVORITE_MARK = "⭐"
PREVIEW_MARK = "\U0001f4f7"

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


def _local_modified(record: FileRecord, fmt: str) -> str:
    dt = record.modified_at
    if dt is None:
        return ""
    try:
        return dt.astimezone().strftime(fmt)
    except (OverflowError, ValueError, OSError):
        return ""


def _date(record: FileRecord) -> str:
    return _local_modified(record, "%x")


def _datetime(record: FileRecord) -> str:
    return _local_modified(record, "%x %X")


PLACEHOLDERS: dict[str, Callable[[FileRecord], str]] = {
    "name": lambda r: r.name,
    "filename": lambda r: r.stem,
    "ext": lambda r: r.extension,
    "size": lambda r: str(r.size),
    "sizekb": lambda r: f"{r.size / 1024:.2f}",
    "sizemb": lambda r: f"{r.size / (1024 * 1024):.2f}",
    "type": lambda r: r.resource_type,
    "mimetype": lambda r: r.mimetype,
    "date": _date,
    "datetime": _datetime,
    "modified": lambda r: r.last_modified,
    "created": lambda r: r.created,
    "favorite": lambda r: FAVORITE_MARK if r.favorite else "",
    "tags": lambda r: ", ".join(r.tags),
    "owner": lambda r: r.owner,
    "fileid": lambda r: r.file_id,
    "preview": lambda r: PREVIEW_MARK if r.has_preview else "",
    "path": lambda r: r.path,
}


def format_record(template: str | None, record: FileRecord) -> str:
    """
    展开模板中的占位符。

    :param template: 模板字符串；为空或 None 时直接返回文件名
    :param record: 待输出的记录
    """
    if not template:
        return record.name

    def _sub(m: re.Match[str]) -> str:
        func = PLACEHOLDERS.get(m.group(1))
        return func(record) if func is not None else m.group(0)

    return _PLACEHOLDER_RE.sub(_sub, template)
