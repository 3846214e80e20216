"""
SelectelAdapter：以 Selectel 容器实现文件系统契约。

每个操作直接委托给 Container / FilesLoader / File，并把远端异常（SelectelError）
转换为对应操作的契约异常，原始异常保存在 __cause__。写入、元数据与存在性检查转换任何异常。
适配器本身无状态，不做缓存。
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Callable

from selectelfs.container import Container, File
from selectelfs.contracts import Config, FileAttributes, FilesystemAdapter
from selectelfs.exceptions import (
    FilesystemError,
    SelectelError,
    UnableToCheckExistence,
    UnableToCopyFile,
    UnableToCreateDirectory,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToSetVisibility,
    UnableToWriteFile,
    UploadFailedError,
)
from selectelfs.models import ListingEntry, normalize_records, parse_timestamp

logger = logging.getLogger(__name__)


class SelectelAdapter(FilesystemAdapter):
    """
    Selectel 云存储适配器。

    :param container: 已解析的存储容器
    :param strict_uploads: 上传失败时的处理方式。
        True（默认）：抛 UnableToWriteFile。
        False：兼容旧行为，记录 WARNING 后忽略上传失败，write 仍正常返回。
    """

    def __init__(self, container: Container, *, strict_uploads: bool = True):
        self.container = container
        self.strict_uploads = strict_uploads

    def close(self) -> None:
        """关闭容器使用的 HTTP 客户端。"""
        self.container.api.close()

    def _get_file(self, path: str) -> File:
        return self.container.files().find(path)

    # ------------------------- 读 -------------------------

    def read(self, path: str) -> bytes:
        try:
            return self._get_file(path).read()
        except SelectelError as e:
            raise UnableToReadFile(path, str(e)) from e

    def read_stream(self, path: str) -> BinaryIO:
        """返回指针位于开头的二进制文件对象，由调用方关闭。"""
        try:
            stream = self._get_file(path).read_stream()
        except SelectelError as e:
            raise UnableToReadFile(path, str(e)) from e
        stream.seek(0)
        return stream

    # ------------------------- 列表与元数据 -------------------------

    def list_contents(self, path: str = "", deep: bool = False) -> list[ListingEntry]:
        """
        列出以 path 为前缀的所有对象。

        deep 参数仅为契约兼容而保留，结果始终是服务端按前缀返回的扁平列表；远端异常不做转换。
        """
        records = self.container.files().with_prefix(path).get()
        return normalize_records(records)

    def get_metadata(self, path: str) -> ListingEntry | None:
        """以 path 为前缀列表中的第一项，没有则为 None。"""
        entries = self.list_contents(path)
        return entries[0] if entries else None

    def mime_type(self, path: str) -> FileAttributes:
        try:
            return FileAttributes(path, mime_type=self._get_file(path).content_type())
        except Exception as e:
            raise UnableToRetrieveMetadata(path, "mime_type", str(e)) from e

    def last_modified(self, path: str) -> FileAttributes:
        """last_modified 为 epoch 秒；服务端时间无法解析时为 0。"""
        try:
            modified = self._get_file(path).last_modified_at()
        except Exception as e:
            raise UnableToRetrieveMetadata(path, "last_modified", str(e)) from e
        return FileAttributes(path, last_modified=parse_timestamp(modified))

    def file_size(self, path: str) -> FileAttributes:
        try:
            return FileAttributes(path, file_size=self._get_file(path).size())
        except Exception as e:
            raise UnableToRetrieveMetadata(path, "file_size", str(e)) from e

    def visibility(self, path: str) -> FileAttributes:
        raise UnableToRetrieveMetadata(path, "visibility", "Unsupported.")

    def set_visibility(self, path: str, visibility: str) -> None:
        raise UnableToSetVisibility(path, visibility, "Unsupported.")

    # ------------------------- 写 -------------------------

    def write(self, path: str, contents: bytes | str, config: Config) -> None:
        try:
            self._write_to_container(self.container.upload_from_string, path, contents)
        except Exception as e:
            raise UnableToWriteFile(path, str(e)) from e

    def write_stream(self, path: str, stream: BinaryIO, config: Config) -> None:
        try:
            self._write_to_container(self.container.upload_from_stream, path, stream)
        except Exception as e:
            raise UnableToWriteFile(path, str(e)) from e

    def _write_to_container(
        self,
        upload: Callable[[str, bytes | str | BinaryIO], str],
        path: str,
        payload: bytes | str | BinaryIO,
    ) -> ListingEntry | None:
        """上传后查询该路径的元数据；非严格模式下上传失败只记录日志。"""
        try:
            upload(path, payload)
        except UploadFailedError as e:
            if self.strict_uploads:
                raise
            logger.warning("Upload of %s failed and was ignored: %s", path, e)
        metadata = self.get_metadata(path)
        logger.debug("Post-write metadata for %s: %s", path, metadata)
        return metadata

    def copy(self, source: str, destination: str, config: Config) -> None:
        try:
            self._get_file(source).copy(destination)
        except SelectelError as e:
            raise UnableToCopyFile(source, destination, str(e)) from e

    def move(self, source: str, destination: str, config: Config) -> None:
        """
        复制后删除源路径，非原子操作。

        删除源失败时目标已存在，此时抛出的 UnableToMoveFile.copied 为 True。
        """
        try:
            self.copy(source, destination, config)
        except FilesystemError as e:
            raise UnableToMoveFile(source, destination, str(e), copied=False) from e
        try:
            self.delete(source)
        except FilesystemError as e:
            logger.warning("Moved %s to %s but could not delete the source", source, destination)
            raise UnableToMoveFile(source, destination, str(e), copied=True) from e

    def delete(self, path: str) -> None:
        try:
            self._get_file(path).delete()
        except SelectelError as e:
            raise UnableToDeleteFile(path, str(e)) from e

    # ------------------------- 目录 -------------------------

    def delete_directory(self, path: str) -> None:
        try:
            self.container.delete_dir(path)
        except SelectelError as e:
            raise UnableToDeleteDirectory(path, str(e)) from e

    def create_directory(self, path: str, config: Config) -> None:
        try:
            self.container.create_dir(path)
        except SelectelError as e:
            raise UnableToCreateDirectory(path, str(e)) from e

    # ------------------------- 存在性 -------------------------

    # 文件与目录使用同一探测：目录本身也是容器中的对象
    def file_exists(self, path: str) -> bool:
        try:
            return self.container.files().exists(path)
        except Exception as e:
            raise UnableToCheckExistence(path, str(e)) from e

    def directory_exists(self, path: str) -> bool:
        try:
            return self.container.files().exists(path)
        except Exception as e:
            raise UnableToCheckExistence(path, str(e)) from e

    def get_url(self, path: str = "") -> str:
        return self.container.url(path)
