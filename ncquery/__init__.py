"""Nextcloud / WebDAV 文件列表查询语言 - 解析查询块、过滤并按模板输出。"""

from ncquery.client import WebDAVClient
from ncquery.config import ConnectionSettings
from ncquery.dates import resolve
from ncquery.errors import CommandError, ConfigurationError, NCQueryError, ServerError
from ncquery.executor import QueryExecutor, RenderResult, render_block, run_query
from ncquery.filters import filter_records, matches
from ncquery.formatter import format_record
from ncquery.models import FileRecord, FilterCriterion, QueryParams
from ncquery.parser import parse_query

__all__ = [
    "WebDAVClient",
    "ConnectionSettings",
    "QueryExecutor",
    "RenderResult",
    "run_query",
    "render_block",
    "parse_query",
    "matches",
    "filter_records",
    "format_record",
    "resolve",
    "FileRecord",
    "FilterCriterion",
    "QueryParams",
    "NCQueryError",
    "CommandError",
    "ConfigurationError",
    "ServerError",
]
