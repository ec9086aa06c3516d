"""可挂载的业务包；由 ``APP_ACTIVE_PACKAGE`` 决定启用哪一个，默认 ``drive``。"""

from __future__ import annotations

import os

from . import drive
from .types import AppPackage

DEFAULT_PACKAGE = drive.package.name

PACKAGE_REGISTRY: dict[str, AppPackage] = {pkg.name: pkg for pkg in (drive.package,)}


def get_active_package() -> AppPackage:
    name = os.getenv("APP_ACTIVE_PACKAGE") or DEFAULT_PACKAGE
    package = PACKAGE_REGISTRY.get(name)
    if package is None:
        raise RuntimeError(f"未知业务包 '{name}'（可选：{', '.join(sorted(PACKAGE_REGISTRY))}）")
    return package


__all__ = ["DEFAULT_PACKAGE", "PACKAGE_REGISTRY", "get_active_package"]
