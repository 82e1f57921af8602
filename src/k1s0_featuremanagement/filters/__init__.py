"""フィーチャーフィルター。"""

from .base import ContextualFeatureFilter, FeatureFilter, FilterParametersBinder, bind_settings
from .percentage import PercentageFilter, PercentageFilterSettings
from .targeting import ContextualTargetingFilter, TargetingFilter
from .time_window import TimeWindowFilter, TimeWindowFilterSettings

__all__ = [
    "ContextualFeatureFilter",
    "ContextualTargetingFilter",
    "FeatureFilter",
    "FilterParametersBinder",
    "PercentageFilter",
    "PercentageFilterSettings",
    "TargetingFilter",
    "TimeWindowFilter",
    "TimeWindowFilterSettings",
    "bind_settings",
]
