"""
Nextcloud / WebDAV 客户端。

通过 PROPFIND（Depth: 1）列出单层目录，并把响应中的属性解码为 FileRecord。
只负责取数据，过滤与格式化由 ncquery.executor 完成。
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any
from urllib.parse import quote, unquote, urlparse

import httpx

from ncquery.errors import NCQueryError, ServerError
from ncquery.models import RESOURCE_FILE, RESOURCE_FOLDER, FileRecord

logger = logging.getLogger(__name__)

NS = {
    "d": "DAV:",
    "oc": "http://owncloud.org/ns",
    "nc": "http://nextcloud.org/ns",
}

# Nextcloud 用户文件的 WebDAV 根路径：/remote.php/dav/files/<用户名>/...
DAV_FILES_ROOT = "/remote.php/dav/files/"

PROPFIND_BODY = """<?xml version="1.0" encoding="UTF-8"?>
<d:propfind xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns" xmlns:nc="http://nextcloud.org/ns">
    <d:prop>
        <d:displayname/>
        <d:getlastmodified/>
        <d:getcontentlength/>
        <d:getcontenttype/>
        <d:resourcetype/>
        <d:creationdate/>
        <oc:size/>
        <oc:favorite/>
        <oc:tags/>
        <oc:owner-display-name/>
        <oc:fileid/>
        <nc:has-preview/>
    </d:prop>
</d:propfind>"""


class ResponseError(NCQueryError):
    """PROPFIND 响应不是可解析的 XML。"""


def normalize_folder(folder: str | None) -> str:
    """统一为以 / 开头、除根目录外不以 / 结尾的路径："Photos/" -> "/Photos"，"" -> "/"。"""
    folder = folder or "/"
    if not folder.startswith("/"):
        folder = "/" + folder
    if folder != "/" and folder.endswith("/"):
        folder = folder.rstrip("/") or "/"
    return folder


def _path_for_url(path: str) -> str:
    """将路径按段做 UTF-8 百分号编码，供 URL 使用（空格、中文等）。"""
    segments = path.strip("/").split("/") if path.strip("/") else []
    return "/" + "/".join(quote(seg, safe="") for seg in segments) if segments else "/"


def _same_path(a: str, b: str) -> bool:
    return unquote(a).rstrip("/") == unquote(b).rstrip("/")


def _relative_path(href_path: str) -> str:
    """
    取相对于用户根目录的路径。

    /remote.php/dav/files/alice/Photos/a.jpg -> /Photos/a.jpg；其他形式原样返回（已解码）。
    """
    decoded = unquote(href_path)
    idx = decoded.find(DAV_FILES_ROOT)
    if idx != -1:
        parts = decoded[idx + len(DAV_FILES_ROOT):].split("/")
        if len(parts) > 1:
            decoded = "/" + "/".join(parts[1:])
    if decoded != "/" and decoded.endswith("/"):
        decoded = decoded.rstrip("/") or "/"
    return decoded


def _text(prop: ET.Element, tag: str) -> str:
    el = prop.find(tag, NS)
    return (el.text or "").strip() if el is not None else ""


def _collect_props(response: ET.Element) -> list[ET.Element]:
    """返回状态为 200 的 prop 元素；都没有状态行时退回全部 prop。"""
    ok: list[ET.Element] = []
    every: list[ET.Element] = []
    for propstat in response.findall("d:propstat", NS):
        prop = propstat.find("d:prop", NS)
        if prop is None:
            continue
        every.append(prop)
        status = _text(propstat, "d:status")
        if " 200 " in f"{status} ":
            ok.append(prop)
    return ok or every


def _first(props: list[ET.Element], tag: str) -> str:
    for prop in props:
        value = _text(prop, tag)
        if value:
            return value
    return ""


def _record_from_response(response: ET.Element) -> FileRecord | None:
    href = _text(response, "d:href")
    props = _collect_props(response)
    if not href or not props:
        return None
    href_path = urlparse(href).path or href

    name = _first(props, "d:displayname")
    if not name:
        segments = [s for s in unquote(href_path).split("/") if s]
        name = segments[-1] if segments else ""
    if not name:
        return None

    is_folder = any(prop.find("d:resourcetype/d:collection", NS) is not None for prop in props)
    size_text = _first(props, "oc:size") or _first(props, "d:getcontentlength") or "0"
    try:
        size = max(int(size_text), 0)
    except ValueError:
        size = 0
    tags = [
        (tag.text or "").strip()
        for prop in props
        for tag in prop.findall("oc:tags/oc:tag", NS)
        if (tag.text or "").strip()
    ]
    return FileRecord(
        name=name,
        path=_relative_path(href_path),
        resource_type=RESOURCE_FOLDER if is_folder else RESOURCE_FILE,
        size=size,
        mimetype=_first(props, "d:getcontenttype"),
        last_modified=_first(props, "d:getlastmodified"),
        created=_first(props, "d:creationdate"),
        favorite=_first(props, "oc:favorite") == "1",
        tags=tags,
        owner=_first(props, "oc:owner-display-name"),
        file_id=_first(props, "oc:fileid"),
        has_preview=_first(props, "nc:has-preview") == "true",
    )


def parse_propfind(xml_text: str, request_path: str) -> list[FileRecord]:
    """
    解析 PROPFIND multistatus 响应。

    :param xml_text: 响应体
    :param request_path: 请求 URL 的 path 部分，用于排除目录自身那一项
    :return: 服务器顺序的记录列表（不含目录自身与无名称项）
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ResponseError(f"Invalid WebDAV response: {e}") from e
    records: list[FileRecord] = []
    for response in root.findall("d:response", NS):
        href = _text(response, "d:href")
        if href and _same_path(urlparse(href).path or href, request_path):
            continue
        record = _record_from_response(response)
        if record is None:
            logger.debug("skipping PROPFIND entry without name: %r", href)
            continue
        records.append(record)
    return records


class WebDAVClient:
    """
    Nextcloud WebDAV 客户端（Basic 认证，建议使用应用密码）。

    示例： base_url="https://cloud.example.com/remote.php/dav/files/alice", username="alice"
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        :param base_url: 用户根目录的 WebDAV 地址（末尾 / 可有可无）
        :param username: 用户名
        :param password: 密码或应用密码
        :param timeout: 请求超时秒数
        :param verify: 是否验证 HTTPS 证书
        :param transport: 自定义 httpx 传输层（测试时传 httpx.MockTransport）
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.verify = verify
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                auth=httpx.BasicAuth(self.username, self.password),
                timeout=self.timeout,
                verify=self.verify,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """关闭底层 HTTP 客户端。"""
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> WebDAVClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def folder_url(self, folder: str) -> str:
        """目录对应的完整 WebDAV 地址（路径按段编码）。"""
        path = _path_for_url(normalize_folder(folder))
        return self.base_url + path

    def propfind(self, url: str, *, depth: str = "1", body: str | None = PROPFIND_BODY) -> httpx.Response:
        headers = {"Depth": depth}
        if body is not None:
            headers["Content-Type"] = "application/xml"
        logger.debug("PROPFIND %s (Depth: %s)", url, depth)
        return self._get_client().request("PROPFIND", url, content=body, headers=headers)

    def list_records(self, folder: str = "/") -> list[FileRecord]:
        """
        列出目录下一层的文件与文件夹。

        :param folder: 相对用户根目录的路径，如 "/" 或 "Photos/2025"
        :return: 服务器顺序的 FileRecord 列表（不含目录自身）
        :raises ServerError: 服务器返回非 2xx
        """
        url = self.folder_url(folder)
        r = self.propfind(url)
        if not r.is_success:
            raise ServerError(r.status_code)
        records = parse_propfind(r.text, urlparse(url).path)
        logger.debug("found %d entries in %s", len(records), folder)
        return records

    def check_connection(self) -> int:
        """
        对根地址发一次 PROPFIND，验证地址与凭证。

        :return: 成功时的状态码
        :raises ServerError: 服务器返回非 2xx
        """
        r = self.propfind(self.base_url + "/", body=None)
        if not r.is_success:
            raise ServerError(r.status_code)
        return r.status_code
