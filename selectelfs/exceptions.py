"""
异常定义。

分两层：
- 远端层（SelectelError 及子类）：由 ApiClient / Container / File 抛出，对应 Selectel Cloud Storage 的请求失败。
- 契约层（FilesystemError 及子类）：由 SelectelAdapter 抛出，每种操作一种，原始远端异常保存在 __cause__。
"""

from __future__ import annotations


# ------------------------- 远端层 -------------------------


class SelectelError(Exception):
    """Selectel 存储客户端的基础异常。"""


class AuthenticationFailedError(SelectelError):
    """认证失败，或在认证前发起了请求。"""


class ApiRequestFailedError(SelectelError):
    """API 请求失败（非预期状态码或传输错误）。status_code 为 None 表示未拿到响应。"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UploadFailedError(ApiRequestFailedError):
    """上传（PUT 对象）失败。"""


class RemoteFileNotFoundError(SelectelError):
    """容器中不存在该路径的文件。"""


# ------------------------- 契约层 -------------------------


class FilesystemError(Exception):
    """文件系统契约的基础异常；location 为出错的路径。"""

    operation = "Filesystem operation failed"

    def __init__(self, location: str, reason: str = ""):
        self.location = location
        self.reason = reason
        super().__init__(self._message())

    def _message(self) -> str:
        return f"{self.operation} at location: {self.location}." + (f" {self.reason}" if self.reason else "")


class UnableToReadFile(FilesystemError):
    operation = "Unable to read file"


class UnableToWriteFile(FilesystemError):
    operation = "Unable to write file"


class UnableToDeleteFile(FilesystemError):
    operation = "Unable to delete file"


class UnableToDeleteDirectory(FilesystemError):
    operation = "Unable to delete directory"


class UnableToCreateDirectory(FilesystemError):
    operation = "Unable to create directory"


class UnableToCheckExistence(FilesystemError):
    operation = "Unable to check existence"


class UnableToCopyFile(FilesystemError):
    """复制失败；location 为源路径，destination 为目标路径。"""

    operation = "Unable to copy file"

    def __init__(self, source: str, destination: str, reason: str = ""):
        self.source = source
        self.destination = destination
        super().__init__(source, reason)

    def _message(self) -> str:
        msg = f"{self.operation} from {self.source} to {self.destination}."
        return msg + (f" {self.reason}" if self.reason else "")


class UnableToMoveFile(FilesystemError):
    """
    移动失败。移动 = 复制 + 删除源，不是原子操作：
    copied=True 表示复制已成功但删除源失败，此时源与目标同时存在，调用方可重试删除或清理目标。
    """

    operation = "Unable to move file"

    def __init__(self, source: str, destination: str, reason: str = "", *, copied: bool = False):
        self.source = source
        self.destination = destination
        self.copied = copied
        super().__init__(source, reason)

    def _message(self) -> str:
        msg = f"{self.operation} from {self.source} to {self.destination}."
        return msg + (f" {self.reason}" if self.reason else "")


class UnableToRetrieveMetadata(FilesystemError):
    """读取元数据失败；metadata_type 为 mime_type / last_modified / file_size / visibility 之一。"""

    operation = "Unable to retrieve metadata"

    def __init__(self, location: str, metadata_type: str, reason: str = ""):
        self.metadata_type = metadata_type
        super().__init__(location, reason)

    def _message(self) -> str:
        msg = f"Unable to retrieve the {self.metadata_type} for file at location: {self.location}."
        return msg + (f" {self.reason}" if self.reason else "")


class UnableToSetVisibility(FilesystemError):
    operation = "Unable to set visibility"

    def __init__(self, location: str, visibility: str, reason: str = ""):
        self.visibility = visibility
        super().__init__(location, reason)

    def _message(self) -> str:
        msg = f"Unable to set visibility to {self.visibility} for file at location: {self.location}."
        return msg + (f" {self.reason}" if self.reason else "")
