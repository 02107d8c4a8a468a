"""
查询语言与 WebDAV 列表的数据模型。

- FileRecord：PROPFIND 响应中的一项（文件或文件夹），每次查询创建、格式化后丢弃。
- FilterCriterion：filter: 段中的一行 ``- key: value``。
- QueryParams：查询块解析结果。固定字段 command / folder / format / list_style，
  filters 为 None 表示源文本中没有 filter: 段；其余头部键保存在 extra 中。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple

from ncquery.dates import parse_timestamp

RESOURCE_FILE = "file"
RESOURCE_FOLDER = "folder"


class FilterCriterion(NamedTuple):
    """单条过滤条件，如 FilterCriterion("extension", "jpg, png")。"""

    key: str
    value: str


@dataclass
class FileRecord:
    name: str
    path: str = ""
    resource_type: str = RESOURCE_FILE
    size: int = 0
    mimetype: str = ""
    last_modified: str = ""
    created: str = ""
    favorite: bool = False
    tags: list[str] = field(default_factory=list)
    owner: str = ""
    file_id: str = ""
    has_preview: bool = False

    @property
    def extension(self) -> str:
        """最后一个 . 之后的部分；没有 . 时为空。"""
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1]

    @property
    def stem(self) -> str:
        """去掉扩展名的文件名；没有 . 时等于 name。"""
        if "." not in self.name:
            return self.name
        return self.name.rsplit(".", 1)[0]

    @property
    def is_folder(self) -> bool:
        return self.resource_type == RESOURCE_FOLDER

    @property
    def modified_at(self) -> datetime | None:
        """last_modified 解析后的时间；缺失或无法解析时为 None。"""
        return parse_timestamp(self.last_modified) if self.last_modified else None


# 有专用字段的头部键，源文本中的写法 -> QueryParams 属性名
_HEADER_FIELDS = {
    "command": "command",
    "folder": "folder",
    "format": "format",
    "list-style": "list_style",
}


@dataclass
class QueryParams:
    command: str | None = None
    folder: str | None = None
    format: str | None = None
    list_style: str | None = None
    filters: list[FilterCriterion] | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def set(self, key: str, value: str) -> None:
        """按源文本中的键名写入头部值；同名键后写覆盖先写。"""
        attr = _HEADER_FIELDS.get(key)
        if attr is not None:
            setattr(self, attr, value)
        else:
            self.extra[key] = value

    def get(self, key: str, default: str | None = None) -> str | None:
        """按源文本中的键名读取头部值（如 "list-style"）。"""
        attr = _HEADER_FIELDS.get(key)
        value = getattr(self, attr) if attr is not None else self.extra.get(key)
        return default if value is None else value

    @property
    def has_filter_section(self) -> bool:
        return self.filters is not None

    @property
    def no_bullets(self) -> bool:
        return self.list_style == "none"

    def to_dict(self) -> dict[str, object]:
        """还原为键值映射（filter 键仅在有 filter: 段时出现）。"""
        out: dict[str, object] = {}
        for key in _HEADER_FIELDS:
            value = self.get(key)
            if value is not None:
                out[key] = value
        out.update(self.extra)
        if self.filters is not None:
            out["filter"] = [{c.key: c.value} for c in self.filters]
        return out
