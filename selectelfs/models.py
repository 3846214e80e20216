"""
数据模型（与 Selectel / OpenStack Swift 的 JSON 列表一致）。

- FileRecord：容器列表 GET /{container}?format=json 返回的每一项
  name=路径, content_type=MIME, bytes=大小(字节), last_modified=修改时间, hash=ETag
- ListingEntry：适配器对外的列表项
  type=file|dir, path, size, timestamp(epoch 秒), mimetype
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable

# 目录在 Swift 中是 content_type 为 application/directory 的空对象
DIRECTORY_CONTENT_TYPE = "application/directory"

FileRecord = dict[str, Any]

ListingEntry = dict[str, Any]


def record_name(record: FileRecord) -> str:
    return record.get("name") or ""


def record_content_type(record: FileRecord) -> str:
    return record.get("content_type") or ""


def record_size(record: FileRecord) -> int:
    """对象大小（字节），缺失时为 0。"""
    return int(record.get("bytes") or 0)


def record_last_modified(record: FileRecord) -> str | None:
    return record.get("last_modified")


def parse_timestamp(value: str | None) -> int:
    """
    将 last_modified 解析为 epoch 秒。

    支持 "2000-01-01 00:00:00"、"2016-01-01T12:00:00.123456"、带时区后缀的形式，
    以及 HTTP 头中的 RFC 1123 日期（"Sat, 01 Jan 2000 00:00:00 GMT"）。
    不带时区时按 UTC 处理，无法解析或为空时返回 0。
    """
    if not value:
        return 0
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        try:
            dt = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def normalize_record(record: FileRecord) -> ListingEntry:
    """FileRecord -> ListingEntry。"""
    content_type = record_content_type(record)
    return {
        "type": "dir" if content_type == DIRECTORY_CONTENT_TYPE else "file",
        "path": record_name(record),
        "size": record_size(record),
        "timestamp": parse_timestamp(record_last_modified(record)),
        "mimetype": content_type,
    }


def normalize_records(records: Iterable[FileRecord]) -> list[ListingEntry]:
    """批量转换；无 name 的记录（如 Swift 的 subdir 伪条目）被跳过。"""
    return [normalize_record(r) for r in records if record_name(r)]


def entry_is_dir(entry: ListingEntry) -> bool:
    return entry.get("type") == "dir"
