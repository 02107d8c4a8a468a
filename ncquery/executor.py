"""
查询执行：解析 -> 取目录列表 -> 过滤 -> 格式化。

run_query 为对外 API，失败时抛出 NCQueryError 子类；
render_block 供渲染端使用，任何失败都转换为一行行内错误信息。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol

import httpx

from ncquery.client import WebDAVClient, normalize_folder
from ncquery.config import ConnectionSettings, load_settings
from ncquery.errors import CommandError, ConfigurationError, NCQueryError
from ncquery.filters import filter_records
from ncquery.formatter import format_record
from ncquery.models import FileRecord, QueryParams
from ncquery.parser import parse_query

logger = logging.getLogger(__name__)

LIST_FILES = "List Files"
NO_RESULTS_MESSAGE = "No files found matching criteria."


class RecordSource(Protocol):
    """取目录列表的一方（WebDAVClient 或测试替身）。"""

    def list_records(self, folder: str = "/") -> list[FileRecord]: ...

    def close(self) -> None: ...


ClientFactory = Callable[[ConnectionSettings], RecordSource]


def _default_client_factory(settings: ConnectionSettings) -> RecordSource:
    return WebDAVClient(settings.base_url, settings.username, settings.password)


class QueryExecutor:
    """
    执行 ``command: List Files`` 查询。

    :param settings: 连接设置；执行期间只读
    :param client_factory: 根据设置创建客户端，默认 WebDAVClient
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        client_factory: ClientFactory = _default_client_factory,
    ):
        self.settings = settings
        self.client_factory = client_factory

    def _check(self, params: QueryParams) -> None:
        if params.command != LIST_FILES:
            raise CommandError()
        if not self.settings.is_complete:
            raise ConfigurationError()

    def execute(self, params: QueryParams) -> list[str]:
        """执行已解析的查询，返回格式化后的字符串（服务器顺序，可能为空）。"""
        self._check(params)
        folder = normalize_folder(params.folder)
        client = self.client_factory(self.settings)
        try:
            records = client.list_records(folder)
        finally:
            client.close()
        kept = filter_records(records, params.filters) if params.has_filter_section else records
        logger.debug("%s: %d of %d entries matched", folder, len(kept), len(records))
        return [format_record(params.format, r) for r in kept]

    def run(self, query_text: str) -> list[str]:
        """解析并执行查询文本。"""
        return self.execute(parse_query(query_text))


def run_query(query_text: str, settings: ConnectionSettings | None = None) -> list[str]:
    """
    对外 API：执行查询文本并返回结果列表。

    :param query_text: 查询块原文
    :param settings: 连接设置；None 时读取本地保存的配置
    :raises CommandError: command 缺失或不是 List Files
    :raises ConfigurationError: 连接设置不完整
    :raises ServerError: 服务器返回非 2xx
    """
    return QueryExecutor(settings if settings is not None else load_settings()).run(query_text)


@dataclass
class RenderResult:
    """渲染端所需的结果：列表项、错误/提示信息、是否去掉列表符号。"""

    items: list[str] = field(default_factory=list)
    message: str | None = None
    no_bullets: bool = False
    is_error: bool = False


def render_block(
    query_text: str,
    settings: ConnectionSettings | None = None,
    client_factory: ClientFactory = _default_client_factory,
) -> RenderResult:
    """
    渲染一个查询块，不向外抛异常。

    未知命令输出 "Unknown command or missing parameters."，执行失败输出 "Error: ..."，
    无结果时输出 "No files found matching criteria."。
    """
    params = parse_query(query_text)
    if params.command != LIST_FILES:
        return RenderResult(message=str(CommandError()), is_error=True)
    executor = QueryExecutor(settings if settings is not None else load_settings(), client_factory)
    try:
        items = executor.execute(params)
    except (NCQueryError, httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug("query failed: %s", e)
        return RenderResult(message=f"Error: {e}", no_bullets=params.no_bullets, is_error=True)
    if not items:
        return RenderResult(message=NO_RESULTS_MESSAGE, no_bullets=params.no_bullets)
    return RenderResult(items=items, no_bullets=params.no_bullets)
