"""
连接配置：本地保存/读取 Nextcloud WebDAV 地址、用户名、密码（建议使用应用密码）。
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def _config_dir() -> Path:
    """配置目录：~/.config/ncquery（所有平台统一）。"""
    return Path.home() / ".config" / "ncquery"


def _config_path() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class ConnectionSettings:
    """
    WebDAV 连接设置。

    base_url 为用户根目录的 WebDAV 地址，如
    https://cloud.example.com/remote.php/dav/files/username/
    """

    base_url: str = ""
    username: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.base_url and self.username and self.password)

    @classmethod
    def from_config(cls, data: dict[str, Any] | None) -> ConnectionSettings:
        if not data:
            return cls()
        return cls(
            base_url=data.get("base_url") or "",
            username=data.get("username") or "",
            password=data.get("password") or "",
        )


def load_config() -> dict[str, Any] | None:
    """读取本地配置；不存在或无效则返回 None。"""
    p = _config_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict) or "base_url" not in data:
        return None
    return data


def load_settings() -> ConnectionSettings:
    """读取本地配置为 ConnectionSettings；无配置时各字段为空。"""
    return ConnectionSettings.from_config(load_config())


def save_config(base_url: str, username: str | None = None, password: str | None = None) -> None:
    """保存连接信息到本地。"""
    p = _config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {"base_url": base_url.rstrip("/")}
    if username is not None:
        data["username"] = username
    if password is not None:
        data["password"] = password
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def clear_config() -> bool:
    """清除本地配置；存在则删除并返回 True。"""
    p = _config_path()
    if p.exists():
        p.unlink()
        return True
    return False
