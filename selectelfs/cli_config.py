"""
CLI 认证配置：本地保存/读取 username、password、container、container_url。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

REQUIRED_KEYS = ("username", "password", "container")


def _config_dir() -> Path:
    """配置目录：~/.config/selectelfs（所有平台统一）。"""
    return Path.home() / ".config" / "selectelfs"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def load_config() -> dict[str, Any] | None:
    """读取本地配置；不存在、无效或缺少必填项则返回 None。"""
    p = _config_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict) or any(not data.get(k) for k in REQUIRED_KEYS):
        return None
    return data


def save_config(
    username: str,
    password: str,
    container: str,
    container_url: str | None = None,
) -> None:
    """保存认证信息到本地。"""
    p = _config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {
        "driver": "selectel",
        "username": username,
        "password": password,
        "container": container,
    }
    if container_url:
        data["container_url"] = container_url.rstrip("/")
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def clear_config() -> bool:
    """清除本地配置；存在则删除并返回 True。"""
    p = _config_path()
    if p.exists():
        p.unlink()
        return True
    return False
