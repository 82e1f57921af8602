"""FeatureDefinitionProvider 抽象基底クラスとインメモリ実装"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from typing import ClassVar

from .models import FeatureDefinition


class FeatureDefinitionProvider(ABC):
    """フィーチャー定義プロバイダー。

    cacheable が True のプロバイダーは、定義が変わらない限り同一の
    パラメータオブジェクトを返すことを保証する。
    """

    cacheable: ClassVar[bool] = False

    @abstractmethod
    async def get_feature_definition(self, name: str) -> FeatureDefinition | None:
        """名前（大文字小文字を区別しない）に対応する定義を返す。"""
        ...

    @abstractmethod
    def get_all_feature_definitions(self) -> AsyncIterator[FeatureDefinition]:
        """すべての定義を遅延的に返す。"""
        ...


class InMemoryFeatureDefinitionProvider(FeatureDefinitionProvider):
    """インメモリのフィーチャー定義プロバイダー。"""

    cacheable = True

    def __init__(self, definitions: Iterable[FeatureDefinition] = ()) -> None:
        self._definitions: dict[str, FeatureDefinition] = {}
        for definition in definitions:
            self.set_definition(definition)

    def set_definition(self, definition: FeatureDefinition) -> None:
        """定義を追加または置き換える。"""
        self._definitions[definition.name.casefold()] = definition

    def remove_definition(self, name: str) -> bool:
        return self._definitions.pop(name.casefold(), None) is not None

    async def get_feature_definition(self, name: str) -> FeatureDefinition | None:
        return self._definitions.get(name.casefold())

    async def get_all_feature_definitions(self) -> AsyncIterator[FeatureDefinition]:
        for definition in list(self._definitions.values()):
            yield definition
