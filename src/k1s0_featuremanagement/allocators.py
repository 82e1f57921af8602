"""バリアントアロケーター"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

import structlog

from ._utils import maybe_await
from .models import (
    FeatureDefinition,
    TargetingContext,
    VariantAllocationContext,
    VariantAssignment,
    VariantAssignmentReason,
)
from .options import TargetingEvaluationOptions
from .targeting.accessor import TargetingContextAccessor
from .targeting.evaluator import is_targeted_group, is_targeted_percentile, is_targeted_user

logger = structlog.stdlib.get_logger(__name__)

TARGETING_ALLOCATOR_NAME = "Targeting"


class FeatureVariantAllocator(ABC):
    """フィーチャーのバリアントを割り当てるアロケーター。"""

    alias: ClassVar[str | None] = None

    @abstractmethod
    async def allocate(
        self, context: VariantAllocationContext, is_enabled: bool
    ) -> VariantAssignment | None:
        """割り当てるバリアントを返す。該当なしなら None。"""
        ...


class ContextualFeatureVariantAllocator(ABC):
    """アプリケーションコンテキストを受け取るアロケーター。"""

    alias: ClassVar[str | None] = None
    context_types: ClassVar[tuple[type, ...]] = (object,)

    @abstractmethod
    async def allocate_with_context(
        self, context: VariantAllocationContext, app_context: Any, is_enabled: bool
    ) -> VariantAssignment | None:
        ...


class TargetingVariantAllocator(FeatureVariantAllocator, ContextualFeatureVariantAllocator):
    """ユーザー → グループ → パーセンタイルの順でバリアントを割り当てる。

    各パスでは宣言順で最初に一致したエントリーが採用される。
    TargetingContext が渡されなかった場合はアクセサーから取得する。
    """

    alias = "Microsoft.Targeting"
    context_types = (TargetingContext,)

    def __init__(
        self,
        options: TargetingEvaluationOptions | None = None,
        context_accessor: TargetingContextAccessor | None = None,
    ) -> None:
        self._options = options or TargetingEvaluationOptions()
        self._context_accessor = context_accessor

    async def allocate(
        self, context: VariantAllocationContext, is_enabled: bool
    ) -> VariantAssignment | None:
        if self._context_accessor is None:
            logger.warning(
                "No targeting context accessor is available for variant allocation",
                feature=context.feature_definition.name,
            )
            return None
        targeting_context = await maybe_await(self._context_accessor.get_context())
        if targeting_context is None:
            logger.warning(
                "No targeting context could be found for variant allocation",
                feature=context.feature_definition.name,
            )
            return None
        return await self.allocate_with_context(context, targeting_context, is_enabled)

    async def allocate_with_context(
        self, context: VariantAllocationContext, app_context: Any, is_enabled: bool
    ) -> VariantAssignment | None:
        definition = context.feature_definition
        if not is_enabled or definition.allocation is None:
            return None
        ignore_case = self._options.ignore_case
        allocation = definition.allocation
        targeting_context: TargetingContext = app_context

        for user in allocation.user:
            if is_targeted_user(targeting_context.user_id, user.users, ignore_case):
                return _assign(definition, user.variant, VariantAssignmentReason.USER, "user")

        for group in allocation.group:
            if is_targeted_group(targeting_context.groups, group.groups, ignore_case):
                return _assign(definition, group.variant, VariantAssignmentReason.GROUP, "group")

        seed = allocation.effective_seed(definition.name)
        for percentile in allocation.percentile:
            if is_targeted_percentile(
                targeting_context, percentile.from_, percentile.to, ignore_case, seed
            ):
                return _assign(
                    definition, percentile.variant, VariantAssignmentReason.PERCENTILE, "percentile"
                )

        return None


def _assign(
    definition: FeatureDefinition,
    variant_name: str | None,
    reason: VariantAssignmentReason,
    kind: str,
) -> VariantAssignment | None:
    if not variant_name:
        logger.warning(
            f"Missing variant name for {kind} allocation",
            feature=definition.name,
        )
        return None
    variant = definition.find_variant(variant_name)
    if variant is None:
        logger.warning(
            "Allocated variant is not defined",
            feature=definition.name,
            variant=variant_name,
        )
    return VariantAssignment(variant=variant, reason=reason)
