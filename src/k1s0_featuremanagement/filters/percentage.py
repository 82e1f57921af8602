"""ランダムなパーセンテージで有効化するフィルター"""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal

from ..models import FeatureFilterEvaluationContext
from .base import FeatureFilter, FilterParametersBinder, bind_settings

logger = structlog.stdlib.get_logger(__name__)


class PercentageFilterSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    value: float = 0.0


class PercentageFilter(FeatureFilter, FilterParametersBinder):
    """評価ごとに value% の確率で有効になる。呼び出し間の一貫性はない。"""

    alias = "Microsoft.Percentage"

    def __init__(self, rng: Callable[[], float] = random.random) -> None:
        self._rng = rng

    def bind_parameters(self, parameters: Mapping[str, Any] | None) -> PercentageFilterSettings:
        return bind_settings(PercentageFilterSettings, parameters, self.alias)

    async def evaluate(self, context: FeatureFilterEvaluationContext) -> bool:
        settings = context.settings
        if not isinstance(settings, PercentageFilterSettings):
            settings = self.bind_parameters(context.parameters)

        if settings.value < 0:
            logger.warning(
                "Percentage filter does not have a valid value",
                feature=context.feature_name,
                value=settings.value,
            )
            return False

        return self._rng() * 100 < settings.value
