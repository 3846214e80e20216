"""
存储驱动注册：按配置中的 driver 名称创建适配器。

    from selectelfs import registry

    registry.boot()
    adapter = registry.build({
        "driver": "selectel",
        "username": "12345_user",
        "password": "secret",
        "container": "media",
        "container_url": "https://static.example.org",  # 可选
    })
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import httpx

from selectelfs.adapter import SelectelAdapter
from selectelfs.client import ApiClient, CloudStorage
from selectelfs.contracts import FilesystemAdapter

logger = logging.getLogger(__name__)

DriverFactory = Callable[[Mapping[str, Any]], FilesystemAdapter]

SELECTEL_DRIVER = "selectel"
REQUIRED_OPTIONS = ("username", "password", "container")

_drivers: dict[str, DriverFactory] = {}


def extend(driver: str, factory: DriverFactory) -> None:
    """注册（或替换）driver 对应的适配器工厂。"""
    _drivers[driver] = factory


def drivers() -> list[str]:
    return sorted(_drivers)


def build(config: Mapping[str, Any]) -> FilesystemAdapter:
    """按 config["driver"]（默认 selectel）创建适配器；未注册的 driver 抛 ValueError。"""
    driver = config.get("driver") or SELECTEL_DRIVER
    factory = _drivers.get(driver)
    if factory is None:
        raise ValueError(f"Unsupported storage driver: {driver}")
    return factory(config)


def create_selectel_adapter(
    config: Mapping[str, Any],
    *,
    transport: httpx.BaseTransport | None = None,
) -> SelectelAdapter:
    """
    认证、获取容器、可选覆盖容器 URL，返回绑定该容器的 SelectelAdapter。

    识别的配置项：username, password, container, container_url（可选）。
    """
    missing = [key for key in REQUIRED_OPTIONS if not config.get(key)]
    if missing:
        raise ValueError(f"Missing required Selectel options: {', '.join(missing)}")

    api = ApiClient(config["username"], config["password"], transport=transport)
    try:
        api.authenticate()
        container = CloudStorage(api).get_container(config["container"])
    except BaseException:
        api.close()
        raise

    if config.get("container_url"):
        container.set_url(config["container_url"])

    return SelectelAdapter(container)


def boot() -> None:
    """注册 selectel 驱动，可重复调用。"""
    if SELECTEL_DRIVER not in _drivers:
        extend(SELECTEL_DRIVER, create_selectel_adapter)
        logger.debug("Registered storage driver %s", SELECTEL_DRIVER)
