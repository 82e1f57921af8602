"""ターゲティング評価とコンテキストアクセサー。"""

from .accessor import ContextVarTargetingContextAccessor, TargetingContextAccessor
from .evaluator import (
    context_percentage,
    is_targeted_audience,
    is_targeted_group,
    is_targeted_percentile,
    is_targeted_user,
)
from .settings import Audience, BasicAudience, GroupRollout, TargetingFilterSettings

__all__ = [
    "Audience",
    "BasicAudience",
    "ContextVarTargetingContextAccessor",
    "GroupRollout",
    "TargetingContextAccessor",
    "TargetingFilterSettings",
    "context_percentage",
    "is_targeted_audience",
    "is_targeted_group",
    "is_targeted_percentile",
    "is_targeted_user",
]
