"""
pytest 配置与共享 fixture。

测试地址与账号见 tests.config。WebDAV 请求通过 httpx.MockTransport 应答，不访问网络。
"""

from __future__ import annotations

import time

import httpx
import pytest

from ncquery.client import WebDAVClient
from ncquery.config import ConnectionSettings
from ncquery.models import FileRecord

from tests.config import NC_BASE_URL, NC_PASSWORD, NC_USERNAME, PHOTOS_PROPFIND
from tests.fakes import FakeSource


@pytest.fixture(autouse=True)
def _patch_config_path(monkeypatch: pytest.MonkeyPatch, tmp_path: pytest.TempPathFactory) -> None:
    """将配置路径指向临时目录，避免污染用户 ~/.config/ncquery。"""
    config_dir = tmp_path / "ncquery"
    config_dir.mkdir(parents=True, exist_ok=True)

    def _config_dir():
        return config_dir

    monkeypatch.setattr("ncquery.config._config_dir", _config_dir)


@pytest.fixture
def west_of_utc():
    """把本地时区设为 UTC-5（POSIX TZ 写法，不依赖 tzdata），结束后恢复。"""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available on this platform")
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("TZ", "EST+05")
        time.tzset()
        yield
    time.tzset()


@pytest.fixture
def settings() -> ConnectionSettings:
    return ConnectionSettings(NC_BASE_URL, NC_USERNAME, NC_PASSWORD)


@pytest.fixture
def sample_records() -> list[FileRecord]:
    """a.jpg / b.png / c.gif，服务器顺序。"""
    return [
        FileRecord(name="a.jpg", path="/Photos/a.jpg", size=100, mimetype="image/jpeg"),
        FileRecord(name="b.png", path="/Photos/b.png", size=200, mimetype="image/png"),
        FileRecord(name="c.gif", path="/Photos/c.gif", size=50, mimetype="image/gif"),
    ]


@pytest.fixture
def fake_source(sample_records: list[FileRecord]) -> FakeSource:
    return FakeSource(sample_records)


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def dav_client(requests_seen: list[httpx.Request]) -> WebDAVClient:
    """对 PROPFIND 返回 PHOTOS_PROPFIND 的客户端；其他方法返回 405。"""

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if request.method != "PROPFIND":
            return httpx.Response(405)
        return httpx.Response(207, text=PHOTOS_PROPFIND)

    client = WebDAVClient(NC_BASE_URL, NC_USERNAME, NC_PASSWORD, transport=httpx.MockTransport(handler))
    yield client
    client.close()
