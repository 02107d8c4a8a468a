"""
按 filter: 段中的条件过滤 FileRecord。

各条件之间为 AND，遇到第一个不满足的条件即停止。条件键区分大小写，未知键视为满足。
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Sequence

from ncquery.dates import resolve
from ncquery.models import FileRecord, FilterCriterion

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

Predicate = Callable[[FileRecord, str], bool]


def _split_list(value: str) -> list[str]:
    """逗号分隔、去空白、转小写。"""
    return [v.strip().lower() for v in value.split(",")]


def _parse_int(value: str) -> int | None:
    """取开头的整数部分（"1000 bytes" -> 1000）；没有则为 None。"""
    m = _LEADING_INT_RE.match(value)
    return int(m.group(1)) if m else None


def _truthy(value: str) -> bool:
    return value in ("1", "true")


def _match_extension(record: FileRecord, value: str) -> bool:
    # 没有 . 时整个名称视为扩展名（README 匹配 extension: readme）
    ext = record.name.rsplit(".", 1)[-1].lower()
    return bool(ext) and ext in _split_list(value)


def _match_type(record: FileRecord, value: str) -> bool:
    return record.resource_type.lower() == value.lower()


def _match_minsize(record: FileRecord, value: str) -> bool:
    limit = _parse_int(value)
    return limit is None or record.size >= limit


def _match_maxsize(record: FileRecord, value: str) -> bool:
    limit = _parse_int(value)
    return limit is None or record.size <= limit


def _match_favorite(record: FileRecord, value: str) -> bool:
    return record.favorite == _truthy(value)


def _match_mimetype(record: FileRecord, value: str) -> bool:
    return record.mimetype.lower() in _split_list(value)


def _match_tag(record: FileRecord, value: str) -> bool:
    wanted = _split_list(value)
    return any(term in tag.lower() for term in wanted for tag in record.tags)


def _match_owner(record: FileRecord, value: str) -> bool:
    return value.lower() in record.owner.lower()


def _match_modified_after(record: FileRecord, value: str) -> bool:
    modified, bound = record.modified_at, resolve(value)
    if modified is None or bound is None:
        logger.debug("modifiedafter %r: unusable date for %s", value, record.name)
        return False
    return modified > bound


def _match_modified_before(record: FileRecord, value: str) -> bool:
    modified, bound = record.modified_at, resolve(value)
    if modified is None or bound is None:
        logger.debug("modifiedbefore %r: unusable date for %s", value, record.name)
        return False
    return modified < bound


def _match_has_preview(record: FileRecord, value: str) -> bool:
    return record.has_preview == _truthy(value)


PREDICATES: dict[str, Predicate] = {
    "extension": _match_extension,
    "type": _match_type,
    "minsize": _match_minsize,
    "maxsize": _match_maxsize,
    "favorite": _match_favorite,
    "mimetype": _match_mimetype,
    "tag": _match_tag,
    "owner": _match_owner,
    "modifiedafter": _match_modified_after,
    "modifiedbefore": _match_modified_before,
    "haspreview": _match_has_preview,
}

# 值为空时跳过的条件（favorite / haspreview 即使为空也参与比较）
_SKIP_WHEN_EMPTY = frozenset(PREDICATES) - {"favorite", "haspreview"}


def criterion_matches(record: FileRecord, criterion: FilterCriterion) -> bool:
    predicate = PREDICATES.get(criterion.key)
    if predicate is None:
        return True
    if not criterion.value and criterion.key in _SKIP_WHEN_EMPTY:
        return True
    return predicate(record, criterion.value)


def matches(record: FileRecord, criteria: Sequence[FilterCriterion] | None) -> bool:
    """record 满足全部条件时返回 True；criteria 为空或 None 时总是 True。"""
    if not criteria:
        return True
    for criterion in criteria:
        if not criterion_matches(record, criterion):
            return False
    return True


def filter_records(
    records: Iterable[FileRecord],
    criteria: Sequence[FilterCriterion] | None,
) -> list[FileRecord]:
    """保留满足全部条件的记录，顺序不变。"""
    return [r for r in records if matches(r, criteria)]
