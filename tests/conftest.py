"""
pytest 配置与共享 fixture。

FakeSwift 是一个内存中的 Selectel/Swift 服务端，通过 httpx.MockTransport 接入 ApiClient，
使 Container / File / SelectelAdapter 在不联网的情况下走完整的请求路径。
"""

from __future__ import annotations

import hashlib
import json
from typing import Any
from urllib.parse import unquote, urlparse

import httpx
import pytest

from selectelfs import ApiClient, CloudStorage, Container, SelectelAdapter

from tests.config import (
    AUTH_TOKEN,
    AUTH_URL,
    SELECTEL_CONTAINER,
    SELECTEL_PASSWORD,
    SELECTEL_USERNAME,
    STORAGE_URL,
    TOKEN_EXPIRES_IN,
)

FAKE_LAST_MODIFIED = "2000-01-01T00:00:00.000000"


class FakeSwift:
    """
    最小的 Swift 容器实现：认证、HEAD 容器、列表（prefix/limit）、对象 GET/PUT/DELETE、X-Copy-From 复制。

    failures[(method, name)] = status 可让某个请求返回指定状态码（name 为容器内路径，"" 表示容器本身），
    值也可以是完整的 httpx.Response，用于返回异常的响应体。
    """

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self.failures: dict[tuple[str, str], int | httpx.Response] = {}
        self.requests: list[httpx.Request] = []
        self._storage_path = urlparse(STORAGE_URL).path

    def add(
        self,
        name: str,
        data: bytes = b"",
        content_type: str = "text/plain",
        last_modified: str = FAKE_LAST_MODIFIED,
    ) -> None:
        self.objects[name] = {"data": data, "content_type": content_type, "last_modified": last_modified}

    def record(self, name: str) -> dict[str, Any]:
        obj = self.objects[name]
        return {
            "name": name,
            "hash": hashlib.md5(obj["data"]).hexdigest(),
            "bytes": len(obj["data"]),
            "content_type": obj["content_type"],
            "last_modified": obj["last_modified"],
        }

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == AUTH_URL:
            return self._auth(request)
        if request.headers.get("X-Auth-Token") != AUTH_TOKEN:
            return httpx.Response(401)
        rel = request.url.path[len(self._storage_path):].lstrip("/")
        container, _, name = rel.partition("/")
        failure = self.failures.get((request.method, name))
        if isinstance(failure, httpx.Response):
            return failure
        if failure is not None:
            return httpx.Response(failure)
        if container != SELECTEL_CONTAINER:
            return httpx.Response(404)
        if not name:
            return self._container(request)
        return self._object(request, name)

    def _auth(self, request: httpx.Request) -> httpx.Response:
        if (
            request.headers.get("X-Auth-User") != SELECTEL_USERNAME
            or request.headers.get("X-Auth-Key") != SELECTEL_PASSWORD
        ):
            return httpx.Response(403)
        return httpx.Response(
            204,
            headers={
                "X-Auth-Token": AUTH_TOKEN,
                "X-Storage-Url": STORAGE_URL,
                "X-Expire-Auth-Token": str(TOKEN_EXPIRES_IN),
            },
        )

    def _container(self, request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(
                204,
                headers={
                    "X-Container-Meta-Type": "public",
                    "X-Container-Object-Count": str(len(self.objects)),
                    "X-Container-Bytes-Used": str(sum(len(o["data"]) for o in self.objects.values())),
                },
            )
        if request.method == "GET":
            prefix = request.url.params.get("prefix", "")
            limit = int(request.url.params.get("limit", "10000"))
            names = sorted(n for n in self.objects if n.startswith(prefix))[:limit]
            if not names:
                return httpx.Response(204)
            return httpx.Response(200, content=json.dumps([self.record(n) for n in names]))
        return httpx.Response(405)

    def _object(self, request: httpx.Request, name: str) -> httpx.Response:
        if request.method == "GET":
            if name not in self.objects:
                return httpx.Response(404)
            return httpx.Response(200, content=self.objects[name]["data"])
        if request.method == "DELETE":
            if self.objects.pop(name, None) is None:
                return httpx.Response(404)
            return httpx.Response(204)
        if request.method == "PUT":
            copy_from = request.headers.get("X-Copy-From")
            if copy_from:
                source = unquote(copy_from).lstrip("/").partition("/")[2]
                if source not in self.objects:
                    return httpx.Response(404)
                self.objects[name] = dict(self.objects[source])
                return httpx.Response(201)
            body = request.content
            etag = hashlib.md5(body).hexdigest()
            if request.headers.get("ETag") not in (None, etag):
                return httpx.Response(422)
            self.add(name, body, request.headers.get("Content-Type", "application/octet-stream"))
            return httpx.Response(201, headers={"ETag": etag})
        return httpx.Response(405)


@pytest.fixture
def swift() -> FakeSwift:
    return FakeSwift()


@pytest.fixture
def api(swift: FakeSwift) -> ApiClient:
    """已认证、请求走 FakeSwift 的 ApiClient。"""
    client = ApiClient(SELECTEL_USERNAME, SELECTEL_PASSWORD, transport=swift.transport())
    client.authenticate()
    yield client
    client.close()


@pytest.fixture
def container(api: ApiClient) -> Container:
    return CloudStorage(api).get_container(SELECTEL_CONTAINER)


@pytest.fixture
def adapter(container: Container) -> SelectelAdapter:
    return SelectelAdapter(container)
