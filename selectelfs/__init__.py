"""Selectel Cloud Storage 文件系统适配器 - https://selectel.ru/services/cloud/storage/"""

from selectelfs.adapter import SelectelAdapter
from selectelfs.client import ApiClient, CloudStorage
from selectelfs.container import Container, File, FilesLoader
from selectelfs.contracts import Config, FileAttributes, FilesystemAdapter
from selectelfs.exceptions import (
    ApiRequestFailedError,
    AuthenticationFailedError,
    FilesystemError,
    RemoteFileNotFoundError,
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
from selectelfs.models import FileRecord, ListingEntry, normalize_record, parse_timestamp

__all__ = [
    "SelectelAdapter",
    "ApiClient",
    "CloudStorage",
    "Container",
    "File",
    "FilesLoader",
    "Config",
    "FileAttributes",
    "FilesystemAdapter",
    "FileRecord",
    "ListingEntry",
    "normalize_record",
    "parse_timestamp",
    "SelectelError",
    "AuthenticationFailedError",
    "ApiRequestFailedError",
    "UploadFailedError",
    "RemoteFileNotFoundError",
    "FilesystemError",
    "UnableToReadFile",
    "UnableToWriteFile",
    "UnableToCopyFile",
    "UnableToMoveFile",
    "UnableToDeleteFile",
    "UnableToDeleteDirectory",
    "UnableToCreateDirectory",
    "UnableToCheckExistence",
    "UnableToRetrieveMetadata",
    "UnableToSetVisibility",
]
