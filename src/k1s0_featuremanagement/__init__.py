"""k1s0 featuremanagement library."""

from .allocators import (
    ContextualFeatureVariantAllocator,
    FeatureVariantAllocator,
    TargetingVariantAllocator,
)
from .configuration import Configuration, MappingConfiguration
from .exceptions import FeatureManagementError, FeatureManagementErrorCodes
from .filters import (
    ContextualFeatureFilter,
    ContextualTargetingFilter,
    FeatureFilter,
    FilterParametersBinder,
    PercentageFilter,
    TargetingFilter,
    TimeWindowFilter,
)
from .loader import (
    ConfigurationFeatureDefinitionProvider,
    load_feature_definitions,
    parse_feature_definitions,
)
from .manager import FeatureManager
from .models import (
    Allocation,
    EvaluationEvent,
    FeatureDefinition,
    FeatureFilterEvaluationContext,
    FeatureStatus,
    FilterConfiguration,
    GroupAllocation,
    PercentileAllocation,
    RequirementType,
    StatusOverride,
    TargetingContext,
    TelemetryConfiguration,
    UserAllocation,
    Variant,
    VariantAllocationContext,
    VariantAssignment,
    VariantAssignmentReason,
    VariantDefinition,
)
from .options import FeatureManagementOptions, ParametersCacheOptions, TargetingEvaluationOptions
from .providers import FeatureDefinitionProvider, InMemoryFeatureDefinitionProvider
from .session import InMemorySessionManager, SessionManager
from .snapshot import FeatureManagerSnapshot
from .targeting import ContextVarTargetingContextAccessor, TargetingContextAccessor
from .telemetry import OpenTelemetryPublisher, TelemetryPublisher

__all__ = [
    "FeatureManager",
    "FeatureManagerSnapshot",
    "FeatureManagementOptions",
    "TargetingEvaluationOptions",
    "ParametersCacheOptions",
    "FeatureDefinition",
    "FilterConfiguration",
    "RequirementType",
    "FeatureStatus",
    "Allocation",
    "UserAllocation",
    "GroupAllocation",
    "PercentileAllocation",
    "VariantDefinition",
    "StatusOverride",
    "TelemetryConfiguration",
    "TargetingContext",
    "FeatureFilterEvaluationContext",
    "VariantAllocationContext",
    "VariantAssignment",
    "VariantAssignmentReason",
    "Variant",
    "EvaluationEvent",
    "FeatureFilter",
    "ContextualFeatureFilter",
    "ContextualTargetingFilter",
    "FilterParametersBinder",
    "TimeWindowFilter",
    "PercentageFilter",
    "TargetingFilter",
    "FeatureVariantAllocator",
    "ContextualFeatureVariantAllocator",
    "TargetingVariantAllocator",
    "FeatureDefinitionProvider",
    "InMemoryFeatureDefinitionProvider",
    "ConfigurationFeatureDefinitionProvider",
    "parse_feature_definitions",
    "load_feature_definitions",
    "TargetingContextAccessor",
    "ContextVarTargetingContextAccessor",
    "Configuration",
    "MappingConfiguration",
    "SessionManager",
    "InMemorySessionManager",
    "TelemetryPublisher",
    "OpenTelemetryPublisher",
    "FeatureManagementError",
    "FeatureManagementErrorCodes",
]
