"""時間帯フィルター"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import AwareDatetime, BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal

from ..models import FeatureFilterEvaluationContext
from .base import FeatureFilter, FilterParametersBinder, bind_settings

logger = structlog.stdlib.get_logger(__name__)


class TimeWindowFilterSettings(BaseModel):
    """TimeWindowFilter のパラメータ。start / end のどちらかは必須。"""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    start: AwareDatetime | None = None
    end: AwareDatetime | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimeWindowFilter(FeatureFilter, FilterParametersBinder):
    """[start, end) の時間帯だけフィーチャーを有効にする。"""

    alias = "Microsoft.TimeWindow"

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def bind_parameters(self, parameters: Mapping[str, Any] | None) -> TimeWindowFilterSettings:
        return bind_settings(TimeWindowFilterSettings, parameters, self.alias)

    async def evaluate(self, context: FeatureFilterEvaluationContext) -> bool:
        settings = context.settings
        if not isinstance(settings, TimeWindowFilterSettings):
            settings = self.bind_parameters(context.parameters)

        if settings.start is None and settings.end is None:
            logger.warning(
                "Time window filter must specify start, end, or both",
                feature=context.feature_name,
            )
            return False

        now = self._clock()
        return (settings.start is None or now >= settings.start) and (
            settings.end is None or now < settings.end
        )
