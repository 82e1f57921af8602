"""内部ユーティリティ"""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """同期実装と非同期実装の両方の戻り値を扱う。"""
    if inspect.isawaitable(value):
        return await value
    return value
