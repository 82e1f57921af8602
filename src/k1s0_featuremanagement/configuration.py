"""バリアント構成参照を解決する設定ツリー"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

_SEPARATOR = re.compile(r"[:.]")


class Configuration(ABC):
    """設定ツリーへのアクセサー。"""

    @abstractmethod
    def get_section(self, reference: str) -> Any | None:
        """参照パスに対応するサブツリーを返す。存在しなければ None。"""
        ...


class MappingConfiguration(Configuration):
    """ネストした Mapping を ':' または '.' 区切りのパスで辿る設定ツリー。

    キーの比較は大文字小文字を区別しない。
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    def get_section(self, reference: str) -> Any | None:
        current: Any = self._data
        for key in _SEPARATOR.split(reference):
            if not isinstance(current, Mapping):
                return None
            current = _lookup(current, key)
            if current is None:
                return None
        return current


def _lookup(mapping: Mapping[str, Any], key: str) -> Any | None:
    if key in mapping:
        return mapping[key]
    folded = key.casefold()
    for candidate, value in mapping.items():
        if str(candidate).casefold() == folded:
            return value
    return None
