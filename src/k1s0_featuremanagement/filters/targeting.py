"""ターゲティングフィルター"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from .._utils import maybe_await
from ..models import FeatureFilterEvaluationContext, TargetingContext
from ..options import TargetingEvaluationOptions
from ..targeting.accessor import TargetingContextAccessor
from ..targeting.evaluator import is_targeted_audience
from ..targeting.settings import TargetingFilterSettings
from .base import ContextualFeatureFilter, FeatureFilter, FilterParametersBinder, bind_settings

logger = structlog.stdlib.get_logger(__name__)

TARGETING_FILTER_ALIAS = "Microsoft.Targeting"


class ContextualTargetingFilter(ContextualFeatureFilter, FilterParametersBinder):
    """呼び出し元が渡した TargetingContext でオーディエンス判定する。

    コンテキストが渡されなければ評価されない。
    """

    alias = TARGETING_FILTER_ALIAS
    context_types = (TargetingContext,)

    def __init__(self, options: TargetingEvaluationOptions | None = None) -> None:
        self._options = options or TargetingEvaluationOptions()

    def bind_parameters(self, parameters: Mapping[str, Any] | None) -> TargetingFilterSettings:
        return bind_settings(TargetingFilterSettings, parameters, self.alias)

    async def evaluate_with_context(
        self, context: FeatureFilterEvaluationContext, app_context: Any
    ) -> bool:
        settings = context.settings
        if not isinstance(settings, TargetingFilterSettings):
            settings = self.bind_parameters(context.parameters)
        return is_targeted_audience(
            settings, app_context, self._options.ignore_case, context.feature_name
        )


class TargetingFilter(FeatureFilter, FilterParametersBinder):
    """アクセサーから取得した TargetingContext でオーディエンス判定する。

    判定そのものは ContextualTargetingFilter に委譲する。
    """

    alias = TARGETING_FILTER_ALIAS

    def __init__(
        self,
        context_accessor: TargetingContextAccessor | None = None,
        options: TargetingEvaluationOptions | None = None,
    ) -> None:
        self._context_accessor = context_accessor
        self._contextual = ContextualTargetingFilter(options)

    def bind_parameters(self, parameters: Mapping[str, Any] | None) -> TargetingFilterSettings:
        return self._contextual.bind_parameters(parameters)

    async def evaluate(self, context: FeatureFilterEvaluationContext) -> bool:
        if self._context_accessor is None:
            logger.warning(
                "No targeting context accessor is available for targeting evaluation",
                feature=context.feature_name,
            )
            return False
        targeting_context = await maybe_await(self._context_accessor.get_context())
        if targeting_context is None:
            logger.warning(
                "No targeting context available for targeting evaluation",
                feature=context.feature_name,
            )
            return False
        return await self._contextual.evaluate_with_context(context, targeting_context)
