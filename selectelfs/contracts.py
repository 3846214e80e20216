"""
文件系统契约：适配器需要实现的固定操作集合。

与 ListingEntry 不同，单项元数据查询（mime_type / last_modified / file_size / visibility）
返回 FileAttributes，且只填充被查询的那个字段。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO

from selectelfs.models import ListingEntry

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"


@dataclass(frozen=True)
class FileAttributes:
    """单个文件的属性快照，未查询的字段为 None。"""

    path: str
    file_size: int | None = None
    visibility: str | None = None
    last_modified: int | None = None
    mime_type: str | None = None


class Config(Mapping[str, Any]):
    """写入类操作的只读选项。"""

    def __init__(self, options: Mapping[str, Any] | None = None):
        self._options = dict(options or {})

    def __getitem__(self, key: str) -> Any:
        return self._options[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def extend(self, options: Mapping[str, Any]) -> Config:
        """返回合并了 options 的新 Config，原对象不变。"""
        return Config({**self._options, **options})

    def __repr__(self) -> str:
        return f"Config({self._options!r})"


class FilesystemAdapter(ABC):
    """文件系统适配器接口。路径均为相对路径字符串。"""

    @abstractmethod
    def file_exists(self, path: str) -> bool:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def directory_exists(self, path: str) -> bool:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def write(self, path: str, contents: bytes | str, config: Config) -> None:  # pragma: no cover
        ...

    @abstractmethod
    def write_stream(self, path: str, stream: BinaryIO, config: Config) -> None:  # pragma: no cover
        ...

    @abstractmethod
    def read(self, path: str) -> bytes:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def read_stream(self, path: str) -> BinaryIO:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def delete(self, path: str) -> None:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def delete_directory(self, path: str) -> None:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def create_directory(self, path: str, config: Config) -> None:  # pragma: no cover
        ...

    @abstractmethod
    def set_visibility(self, path: str, visibility: str) -> None:  # pragma: no cover
        ...

    @abstractmethod
    def visibility(self, path: str) -> FileAttributes:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def mime_type(self, path: str) -> FileAttributes:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def last_modified(self, path: str) -> FileAttributes:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def file_size(self, path: str) -> FileAttributes:  # pragma: no cover - interface contract
        ...

    @abstractmethod
    def list_contents(self, path: str = "", deep: bool = False) -> list[ListingEntry]:  # pragma: no cover
        ...

    @abstractmethod
    def move(self, source: str, destination: str, config: Config) -> None:  # pragma: no cover
        ...

    @abstractmethod
    def copy(self, source: str, destination: str, config: Config) -> None:  # pragma: no cover
        ...

    def close(self) -> None:
        """释放适配器持有的资源，默认无操作。"""
