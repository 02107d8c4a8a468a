"""
查询块解析：

    command: List Files
    folder: Photos
    filter:
        - extension: jpg, png
        - minsize: 1000
    format: {{name}} ({{sizekb}} KB)
    list-style: none

头部为 ``key: value``（无冒号时退回 ``key; value``），只支持一层嵌套：filter: 段下的 ``- key: value`` 列表。
无法识别的行直接忽略（仅记 DEBUG 日志），不报错。
"""

from __future__ import annotations

import logging
import re

from ncquery.models import FilterCriterion, QueryParams

logger = logging.getLogger(__name__)

_CRITERION_RE = re.compile(r"^-\s*(\w+):\s*(.+)$")


def _split_header(line: str) -> tuple[str, str] | None:
    """拆分头部行；值中的冒号（如 URL）原样保留。"""
    parts = line.split(":")
    if len(parts) < 2:
        parts = line.split(";")
    if len(parts) < 2:
        return None
    key = parts[0].strip()
    value = ":".join(parts[1:]).strip()
    if not key or not value:
        return None
    return key, value


def parse_query(text: str) -> QueryParams:
    """
    将查询块文本解析为 QueryParams。

    :param text: 查询块原文（按换行分行）
    :return: 解析结果；params.filters 仅在出现 filter: 行时为列表
    """
    params = QueryParams()
    in_filter = False

    for lineno, line in enumerate(text.split("\n"), start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        if trimmed.startswith("filter:"):
            # filter: 后面的内容不作为值，只是段落标记
            in_filter = True
            params.filters = []
            continue

        if in_filter:
            m = _CRITERION_RE.match(trimmed)
            if m:
                params.filters.append(FilterCriterion(m.group(1), m.group(2).strip()))
                continue
            if not line.startswith((" ", "\t")) and not trimmed.startswith("-"):
                in_filter = False
            else:
                logger.debug("line %d: ignored in filter section: %r", lineno, trimmed)
                continue

        pair = _split_header(line)
        if pair is None:
            logger.debug("line %d: not a key/value line: %r", lineno, trimmed)
            continue
        params.set(*pair)

    return params
