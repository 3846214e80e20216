"""
容器与文件对象：Container（上传、目录、URL）、FilesLoader（列表与查找）、File（单个对象的读/复制/删除）。
"""

from __future__ import annotations

import hashlib
import logging
import mimetypes
import os
import tempfile
from typing import Any, BinaryIO, Iterator

from selectelfs.client import ApiClient, _path_for_url
from selectelfs.exceptions import (
    ApiRequestFailedError,
    RemoteFileNotFoundError,
    UploadFailedError,
)
from selectelfs.models import DIRECTORY_CONTENT_TYPE, FileRecord, record_name

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _object_path(container: str, path: str) -> str:
    """容器内对象的已编码请求路径，如 ("media", "a b/c.txt") -> "/media/a%20b/c.txt"。"""
    return _path_for_url(container) + _path_for_url(path)


def _guess_content_type(path: str) -> str:
    return mimetypes.guess_type(path)[0] or DEFAULT_CONTENT_TYPE


class Container:
    """存储容器。data 为 HEAD 容器时得到的 type / files_count / size。"""

    UPLOAD_CHUNK_SIZE = 1024 * 1024  # 1 MiB，流式上传块大小，避免整文件读入内存

    def __init__(self, api: ApiClient, name: str, data: dict[str, Any] | None = None):
        self.api = api
        self._name = name
        self._data = data or {}
        self._url: str | None = None

    def name(self) -> str:
        return self._name

    def type(self) -> str:
        """public 或 private。"""
        return self._data.get("type", "private")

    def files_count(self) -> int:
        return int(self._data.get("files_count") or 0)

    def size(self) -> int:
        """容器已用字节数。"""
        return int(self._data.get("size") or 0)

    def set_url(self, url: str) -> None:
        """覆盖公开访问的基础 URL（如绑定的 CDN 域名）。"""
        self._url = url

    def url(self, path: str = "") -> str:
        """
        返回 path 对应的完整 URL。

        基础 URL 为 set_url 设置的地址，否则为 {storage_url}/{container}；
        path 的前导 / 会被去掉，因此 "/file.txt" 与 "file.txt" 得到相同结果。
        """
        base = self._url or f"{self.api.storage_url() or ''}/{self._name}"
        return base.rstrip("/") + "/" + path.lstrip("/")

    def files(self) -> FilesLoader:
        return FilesLoader(self.api, self._name)

    # ------------------------- 上传 -------------------------

    def upload_from_string(
        self,
        path: str,
        contents: bytes | str,
        *,
        content_type: str | None = None,
        verify_checksum: bool = True,
    ) -> str:
        """
        以字符串/bytes 内容上传对象（PUT /{container}/{path}）。

        :param content_type: 不传时按扩展名推断
        :param verify_checksum: 为 True 时附带 ETag（MD5），服务端校验内容完整性
        :return: 服务端返回的 ETag
        """
        body = contents.encode("utf-8") if isinstance(contents, str) else contents
        headers = {
            "Content-Type": content_type or _guess_content_type(path),
            "Content-Length": str(len(body)),
        }
        if verify_checksum:
            headers["ETag"] = hashlib.md5(body).hexdigest()
        return self._upload(path, body, headers)

    def upload_from_stream(
        self,
        path: str,
        stream: BinaryIO,
        *,
        content_type: str | None = None,
    ) -> str:
        """
        以文件对象上传对象。可 seek 的文件对象从当前位置按块流式发送并带 Content-Length，
        否则以 chunked 方式发送。

        :return: 服务端返回的 ETag
        """
        headers = {"Content-Type": content_type or _guess_content_type(path)}
        try:
            current = stream.tell()
            stream.seek(0, os.SEEK_END)
            size = stream.tell() - current
            stream.seek(current)
        except (AttributeError, OSError):
            size = None
        except ValueError as e:
            # 已关闭的文件对象
            raise UploadFailedError(f'Unable to upload file "{path}": {e}') from e
        if size is not None:
            headers["Content-Length"] = str(size)
        return self._upload(path, self._stream_chunks(stream), headers)

    def _stream_chunks(self, stream: BinaryIO) -> Iterator[bytes]:
        while True:
            chunk = stream.read(self.UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    def _upload(self, path: str, body: bytes | Iterator[bytes], headers: dict[str, str]) -> str:
        try:
            r = self.api.request("PUT", _object_path(self._name, path), content=body, headers=headers)
        except ApiRequestFailedError as e:
            raise UploadFailedError(f'Unable to upload file "{path}": {e}', e.status_code) from e
        except (ValueError, OSError) as e:
            # 发送过程中读取文件对象失败
            raise UploadFailedError(f'Unable to upload file "{path}": {e}') from e
        if r.status_code != 201:
            raise UploadFailedError(f'Unable to upload file "{path}".', r.status_code)
        logger.debug("Uploaded %s/%s", self._name, path)
        return r.headers.get("ETag", "")

    # ------------------------- 目录 -------------------------

    def create_dir(self, name: str) -> str:
        """创建目录：上传 content_type 为 application/directory 的空对象；返回 ETag。"""
        r = self.api.request(
            "PUT",
            _object_path(self._name, name),
            content=b"",
            headers={"Content-Type": DIRECTORY_CONTENT_TYPE, "Content-Length": "0"},
        )
        if r.status_code != 201:
            raise ApiRequestFailedError(f'Unable to create directory "{name}".', r.status_code)
        return r.headers.get("ETag", "")

    def delete_dir(self, name: str) -> None:
        r = self.api.request("DELETE", _object_path(self._name, name))
        if r.status_code != 204:
            raise ApiRequestFailedError(f'Unable to delete directory "{name}".', r.status_code)


class FilesLoader:
    """
    文件列表查询。每个链式方法返回新的 FilesLoader，原对象不变：

        container.files().with_prefix("images/").limit(100).get()
    """

    DEFAULT_LIMIT = 10000

    def __init__(self, api: ApiClient, container: str, params: dict[str, Any] | None = None):
        self.api = api
        self.container = container
        self._params: dict[str, Any] = params or {"limit": self.DEFAULT_LIMIT}

    def _with(self, **params: Any) -> FilesLoader:
        return FilesLoader(self.api, self.container, {**self._params, **params})

    def with_prefix(self, prefix: str) -> FilesLoader:
        return self._with(prefix=prefix)

    def from_directory(self, directory: str) -> FilesLoader:
        """仅列出该目录的直接子项（Swift 的 path 参数）。"""
        return self._with(path=directory.strip("/"))

    def limit(self, limit: int) -> FilesLoader:
        return self._with(limit=limit)

    def get(self) -> list[FileRecord]:
        """执行列表请求，返回 FileRecord 列表（空容器返回 []）。"""
        params = {"format": "json", **{k: v for k, v in self._params.items() if v not in (None, "")}}
        r = self.api.request("GET", _path_for_url(self.container), params=params)
        if r.status_code == 204:
            return []
        if r.status_code != 200:
            raise ApiRequestFailedError(f'Unable to list files of container "{self.container}".', r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise ApiRequestFailedError(
                f'Malformed listing of container "{self.container}": {e}', r.status_code
            ) from e

    def find(self, path: str) -> File:
        """按完整路径查找单个文件；不存在时抛 RemoteFileNotFoundError。"""
        records = FilesLoader(self.api, self.container).with_prefix(path).limit(1).get()
        if not records or record_name(records[0]) != path:
            raise RemoteFileNotFoundError(f'File "{path}" was not found.')
        return File(self.api, self.container, records[0])

    def exists(self, path: str) -> bool:
        try:
            self.find(path)
        except RemoteFileNotFoundError:
            return False
        return True


class File:
    """容器中的单个对象，data 为列表中的 FileRecord。"""

    STREAM_SPOOL_SIZE = 8 * 1024 * 1024  # 超过该大小的流式下载落到临时文件

    def __init__(self, api: ApiClient, container: str, data: FileRecord):
        self.api = api
        self.container = container
        self._data = data

    def path(self) -> str:
        return record_name(self._data)

    def name(self) -> str:
        return self.path().rsplit("/", 1)[-1]

    def content_type(self) -> str:
        return self._data.get("content_type") or ""

    def size(self) -> int:
        return int(self._data.get("bytes") or 0)

    def last_modified_at(self) -> str | None:
        return self._data.get("last_modified")

    def etag(self) -> str | None:
        return self._data.get("hash")

    def _request_path(self) -> str:
        return _object_path(self.container, self.path())

    def _check_read_status(self, status_code: int) -> None:
        if status_code == 404:
            raise RemoteFileNotFoundError(f'File "{self.path()}" was not found.')
        if status_code != 200:
            raise ApiRequestFailedError(f'Unable to read file "{self.path()}".', status_code)

    def read(self) -> bytes:
        r = self.api.request("GET", self._request_path())
        self._check_read_status(r.status_code)
        return r.content

    def read_stream(self) -> BinaryIO:
        """
        流式下载到 SpooledTemporaryFile 并返回；返回时指针位于末尾，由调用方 seek(0)。
        调用方负责关闭返回的文件对象。
        """
        out = tempfile.SpooledTemporaryFile(max_size=self.STREAM_SPOOL_SIZE)
        try:
            with self.api.stream("GET", self._request_path()) as r:
                self._check_read_status(r.status_code)
                for chunk in r.iter_bytes():
                    out.write(chunk)
        except Exception:
            out.close()
            raise
        return out

    def copy(self, destination: str) -> str:
        """服务端复制到同一容器内的 destination（PUT + X-Copy-From）；返回 destination。"""
        r = self.api.request(
            "PUT",
            _object_path(self.container, destination),
            content=b"",
            headers={
                "X-Copy-From": _object_path(self.container, self.path()),
                "Content-Length": "0",
            },
        )
        if r.status_code != 201:
            raise ApiRequestFailedError(f'Unable to copy file "{self.path()}" to "{destination}".', r.status_code)
        return destination

    def delete(self) -> None:
        r = self.api.request("DELETE", self._request_path())
        if r.status_code != 204:
            raise ApiRequestFailedError(f'Unable to delete file "{self.path()}".', r.status_code)
