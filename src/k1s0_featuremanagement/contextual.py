"""コンテキスト付きフィルター / アロケーターのアダプター

実装側が宣言した context_types と呼び出し元のコンテキスト型を照合し、
型パラメータを知らない呼び出し元から同じシグネチャで評価できるようにする。
"""

from __future__ import annotations

from typing import Any

from ._utils import maybe_await
from .allocators import ContextualFeatureVariantAllocator
from .filters.base import ContextualFeatureFilter
from .models import FeatureFilterEvaluationContext, VariantAllocationContext, VariantAssignment


def _accepts(context_types: tuple[type, ...], app_context_type: type) -> bool:
    return any(issubclass(app_context_type, declared) for declared in context_types)


class ContextualFeatureFilterEvaluator:
    """ContextualFeatureFilter を非ジェネリックなシグネチャで評価する。"""

    def __init__(self, feature_filter: Any) -> None:
        self._filter = feature_filter

    @staticmethod
    def is_contextual_filter(feature_filter: Any, app_context_type: type) -> bool:
        return isinstance(feature_filter, ContextualFeatureFilter) and _accepts(
            feature_filter.context_types, app_context_type
        )

    @classmethod
    def create(cls, feature_filter: Any, app_context_type: type) -> ContextualFeatureFilterEvaluator | None:
        """適用可能な場合のみ評価器を返す。"""
        if feature_filter is None or not cls.is_contextual_filter(feature_filter, app_context_type):
            return None
        return cls(feature_filter)

    async def evaluate(self, context: FeatureFilterEvaluationContext, app_context: Any) -> bool:
        return bool(await maybe_await(self._filter.evaluate_with_context(context, app_context)))


class ContextualVariantAllocatorEvaluator:
    """ContextualFeatureVariantAllocator を非ジェネリックなシグネチャで評価する。"""

    def __init__(self, allocator: Any) -> None:
        self._allocator = allocator

    @staticmethod
    def is_contextual_allocator(allocator: Any, app_context_type: type) -> bool:
        return isinstance(allocator, ContextualFeatureVariantAllocator) and _accepts(
            allocator.context_types, app_context_type
        )

    @classmethod
    def create(cls, allocator: Any, app_context_type: type) -> ContextualVariantAllocatorEvaluator | None:
        """適用可能な場合のみ評価器を返す。"""
        if allocator is None or not cls.is_contextual_allocator(allocator, app_context_type):
            return None
        return cls(allocator)

    async def allocate(
        self, context: VariantAllocationContext, app_context: Any, is_enabled: bool
    ) -> VariantAssignment | None:
        return await maybe_await(
            self._allocator.allocate_with_context(context, app_context, is_enabled)
        )
