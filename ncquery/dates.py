"""
相对日期表达式求值。

支持三种写法：
- ``now``（不区分大小写）
- 绝对时间：ISO-8601（``2025-10-10``、``2025-10-10T08:30:00``、带时区偏移或 ``Z``），
  以及 WebDAV getlastmodified 使用的 RFC 1123（``Fri, 10 Oct 2025 08:30:00 GMT``）
- 算术：``<base> +|- <n> <unit>[s]``，base 为 now 或绝对时间，
  unit 为 second/minute/hour/day/week/month/year

无法解析时返回 None（相当于 Invalid Date），不抛异常；与 None 的任何比较都视为不成立。
无时区的输入按本地时间处理，返回值一律带时区。
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta
from email.utils import parsedate_to_datetime

_ARITHMETIC_RE = re.compile(
    r"^(.+?)\s*([+-])\s*(\d+)\s*(second|minute|hour|day|week|month|year)s?$",
    re.IGNORECASE,
)

_FIXED_UNITS = {
    "second": timedelta(seconds=1),
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(days=7),
}


def now() -> datetime:
    """当前本地时间（带时区）。单独成函数便于测试替换。"""
    return datetime.now().astimezone()


def parse_timestamp(value: str) -> datetime | None:
    """解析绝对时间字符串；失败返回 None。"""
    text = (value or "").strip()
    if not text:
        return None
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        try:
            dt = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
        if dt is None:
            return None
    if dt.tzinfo is None:
        # 接近 datetime.min/max 的本地时间换算可能越界
        try:
            dt = dt.astimezone()
        except (OverflowError, ValueError, OSError):
            return None
    return dt


def add_months(dt: datetime, months: int) -> datetime:
    """按日历字段加减月份；目标月没有该日时取该月最后一天（如 1 月 31 日 + 1 月 -> 2 月 28/29 日）。"""
    total = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def _resolve_base(text: str) -> datetime | None:
    if text.strip().lower() == "now":
        return now()
    return parse_timestamp(text)


def resolve(expr: str) -> datetime | None:
    """
    将日期表达式解析为具体时间。

    :param expr: 如 "now"、"now - 10 days"、"2025-10-10 + 5 hours"、"2025-01-31"
    :return: 带时区的 datetime；无法解析时为 None
    """
    trimmed = (expr or "").strip()
    if trimmed.lower() == "now":
        return now()

    m = _ARITHMETIC_RE.match(trimmed)
    if m is None:
        return parse_timestamp(trimmed)

    base_str, operator, amount, unit = m.groups()
    base = _resolve_base(base_str)
    if base is None:
        return None
    unit = unit.lower()
    try:
        value = int(amount) * (1 if operator == "+" else -1)
        if unit == "month":
            return add_months(base, value)
        if unit == "year":
            return add_months(base, value * 12)
        return base + _FIXED_UNITS[unit] * value
    except (OverflowError, ValueError):
        return None
