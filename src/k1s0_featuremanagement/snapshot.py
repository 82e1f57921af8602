"""リクエストスコープのフィーチャー評価スナップショット"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from .manager import FeatureManager
from .models import TargetingContext, Variant


class FeatureManagerSnapshot:
    """1 リクエスト内で同じフィーチャーの評価結果を固定する。

    最初の評価結果をフィーチャー名（大文字小文字を区別しない）ごとに保持し、
    以降はコンテキストに関わらず同じ結果を返す。
    """

    def __init__(self, manager: FeatureManager) -> None:
        self._manager = manager
        self._flags: dict[str, bool] = {}
        self._variants: dict[str, Variant | None] = {}
        self._feature_names: list[str] | None = None

    async def is_enabled(self, feature: str, app_context: Any = None) -> bool:
        key = feature.casefold()
        if key not in self._flags:
            self._flags[key] = await self._manager.is_enabled(feature, app_context)
        return self._flags[key]

    async def get_variant(
        self, feature: str, targeting_context: TargetingContext | None = None
    ) -> Variant | None:
        key = feature.casefold()
        if key not in self._variants:
            self._variants[key] = await self._manager.get_variant(feature, targeting_context)
        return self._variants[key]

    async def get_feature_names(self) -> AsyncIterator[str]:
        if self._feature_names is None:
            self._feature_names = [name async for name in self._manager.get_feature_names()]
        for name in self._feature_names:
            yield name
