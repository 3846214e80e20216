"""
Selectel Cloud Storage API 客户端。

Selectel 存储兼容 OpenStack Swift：先用 X-Auth-User / X-Auth-Key 认证拿到 token 与 storage URL，
之后所有请求都带 X-Auth-Token 发到 storage URL 下的 /{container}/{path}。
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator
from urllib.parse import quote

import httpx

from selectelfs.exceptions import ApiRequestFailedError, AuthenticationFailedError

if TYPE_CHECKING:
    from selectelfs.container import Container

logger = logging.getLogger(__name__)

AUTH_URL = "https://api.selcdn.ru/auth/v1.0"

AUTH_USER_HEADER = "X-Auth-User"
AUTH_KEY_HEADER = "X-Auth-Key"
AUTH_TOKEN_HEADER = "X-Auth-Token"
STORAGE_URL_HEADER = "X-Storage-Url"
EXPIRE_TOKEN_HEADER = "X-Expire-Auth-Token"


def _path_for_url(path: str) -> str:
    """将路径按段做 UTF-8 百分号编码，供 URL 使用（避免中文、空格等导致请求路径错误）。"""
    segments = (path.strip("/").split("/") if path.strip("/") else [])
    return "/" + "/".join(quote(seg, safe="") for seg in segments) if segments else "/"


class ApiClient:
    """
    Selectel 存储 API 客户端，负责认证与发送请求。

    示例： ApiClient("12345_user", "secret").authenticate()
    """

    def __init__(
        self,
        username: str,
        password: str,
        *,
        auth_url: str = AUTH_URL,
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        :param username: 存储用户名（如 12345 或 12345_user）
        :param password: 存储用户密码
        :param auth_url: 认证地址
        :param timeout: 请求超时秒数
        :param verify: 是否验证 HTTPS 证书
        :param transport: 自定义 httpx transport（测试时传 httpx.MockTransport）
        """
        self.username = username
        self.password = password
        self.auth_url = auth_url
        self.timeout = timeout
        self.verify = verify
        self._transport = transport
        self._token: str | None = None
        self._storage_url: str | None = None
        self._token_expires_in: int | None = None
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
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

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ------------------------- 认证 -------------------------

    def authenticate(self) -> None:
        """
        认证并保存 token 与 storage URL。

        成功时服务端返回 204 及 X-Auth-Token / X-Storage-Url / X-Expire-Auth-Token 头。
        """
        headers = {AUTH_USER_HEADER: self.username, AUTH_KEY_HEADER: self.password}
        try:
            r = self._get_client().get(self.auth_url, headers=headers)
        except httpx.HTTPError as e:
            raise AuthenticationFailedError(f"Authentication request failed: {e}") from e
        if r.status_code != 204:
            raise AuthenticationFailedError(f"Authentication failed with status {r.status_code}.")
        token = r.headers.get(AUTH_TOKEN_HEADER)
        storage_url = r.headers.get(STORAGE_URL_HEADER)
        if not token or not storage_url:
            raise AuthenticationFailedError("Authentication response is missing token or storage URL.")
        self._token = token
        self._storage_url = storage_url.rstrip("/")
        expires = r.headers.get(EXPIRE_TOKEN_HEADER)
        self._token_expires_in = int(expires) if expires and expires.isdigit() else None
        logger.info("Authenticated as %s, storage URL %s", self.username, self._storage_url)

    def authenticated(self) -> bool:
        return self._token is not None

    def token(self) -> str | None:
        return self._token

    def storage_url(self) -> str | None:
        return self._storage_url

    def token_expires_in(self) -> int | None:
        """token 剩余有效期（秒），服务端未返回时为 None。"""
        return self._token_expires_in

    # ------------------------- 请求 -------------------------

    def _url_and_headers(self, path: str, headers: dict[str, str] | None) -> tuple[str, dict[str, str]]:
        if not self.authenticated():
            raise AuthenticationFailedError("Client is not authenticated. Call authenticate() first.")
        merged = {AUTH_TOKEN_HEADER: self._token or ""}
        if headers:
            merged.update(headers)
        return f"{self._storage_url}{path}", merged

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        向 storage URL 发送请求。

        :param method: HTTP 方法
        :param path: 已编码的相对路径，如 "/container/dir/file.txt"
        :param headers: 额外请求头（X-Auth-Token 自动附加）
        :return: 响应对象；不检查状态码，由调用方判断
        """
        url, merged = self._url_and_headers(path, headers)
        logger.debug("%s %s", method, url)
        try:
            return self._get_client().request(method, url, headers=merged, **kwargs)
        except httpx.HTTPError as e:
            raise ApiRequestFailedError(f"{method} {path} failed: {e}") from e

    @contextmanager
    def stream(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Iterator[httpx.Response]:
        """流式请求，响应体未读入内存；用法同 httpx.Client.stream。"""
        url, merged = self._url_and_headers(path, headers)
        logger.debug("%s %s (stream)", method, url)
        try:
            with self._get_client().stream(method, url, headers=merged, **kwargs) as r:
                yield r
        except httpx.HTTPError as e:
            raise ApiRequestFailedError(f"{method} {path} failed: {e}") from e


class CloudStorage:
    """存储账户：列出与获取容器。"""

    def __init__(self, api: ApiClient):
        self.api = api

    def containers(self) -> list[str]:
        """列出账户下所有容器名称。"""
        r = self.api.request("GET", "/", params={"format": "json"})
        if r.status_code == 204:
            return []
        if r.status_code != 200:
            raise ApiRequestFailedError("Unable to list containers.", r.status_code)
        return [item["name"] for item in r.json() if item.get("name")]

    def get_container(self, name: str) -> Container:
        """获取容器（HEAD /{name}），容器不存在或请求失败时抛 ApiRequestFailedError。"""
        from selectelfs.container import Container

        r = self.api.request("HEAD", _path_for_url(name))
        if r.status_code not in (200, 204):
            raise ApiRequestFailedError(f'Container "{name}" was not found.', r.status_code)
        data = {
            "type": r.headers.get("X-Container-Meta-Type", "private"),
            "files_count": int(r.headers.get("X-Container-Object-Count") or 0),
            "size": int(r.headers.get("X-Container-Bytes-Used") or 0),
        }
        logger.info("Resolved container %s (%s)", name, data["type"])
        return Container(self.api, name, data)
