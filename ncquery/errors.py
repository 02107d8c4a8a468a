"""
查询执行过程中向调用方抛出的异常。

解析阶段的格式问题（无法识别的行、无效日期）在本地忽略，不会抛出。
"""

from __future__ import annotations


class NCQueryError(Exception):
    """所有查询错误的基类。"""


class CommandError(NCQueryError):
    """command 缺失或不是受支持的命令。"""

    def __init__(self, message: str = "Unknown command or missing parameters.") -> None:
        super().__init__(message)


class ConfigurationError(NCQueryError):
    """连接设置（URL、用户名、密码）未配置。"""

    def __init__(self, message: str = "Please configure Nextcloud credentials in settings.") -> None:
        super().__init__(message)


class ServerError(NCQueryError):
    """服务器返回非 2xx 状态码。"""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"Server returned status {status_code}")
