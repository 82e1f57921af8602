"""評価イベントのテレメトリー送信"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import structlog
from opentelemetry import metrics, trace

from .models import EvaluationEvent, VariantAssignmentReason

logger = structlog.stdlib.get_logger(__name__)

EVALUATION_EVENT_NAME = "FeatureFlag"
EVALUATION_EVENT_VERSION = "1.0.0"

_meter = metrics.get_meter("k1s0.featuremanagement", version="0.1.0")

feature_evaluations_total = _meter.create_counter(
    name="feature_evaluations_total",
    description="Total number of feature evaluations with telemetry enabled",
    unit="1",
)


class TelemetryPublisher(ABC):
    """評価イベントの送信先。"""

    @abstractmethod
    async def publish(self, event: EvaluationEvent) -> None:
        ...


def build_event_attributes(event: EvaluationEvent) -> dict[str, Any]:
    """評価イベントをフラットな属性辞書に変換する。"""
    definition = event.feature_definition
    if definition is None:
        raise ValueError("evaluation event has no feature definition")

    attributes: dict[str, Any] = {
        "FeatureName": definition.name,
        "Enabled": event.enabled,
        "VariantAssignmentReason": event.variant_assignment_reason.value,
        "Version": EVALUATION_EVENT_VERSION,
    }
    if event.targeting_context is not None and event.targeting_context.user_id:
        attributes["TargetingId"] = event.targeting_context.user_id
    if event.variant is not None and event.variant.name:
        attributes["Variant"] = event.variant.name

    for key, value in definition.telemetry.metadata.items():
        if key in attributes:
            logger.warning(
                "Telemetry metadata key ignored because it would override an existing key",
                feature=definition.name,
                key=key,
            )
            continue
        attributes[key] = value

    allocation = definition.allocation
    reason = event.variant_assignment_reason
    if reason == VariantAssignmentReason.DEFAULT_WHEN_ENABLED:
        allocated = sum(p.to - p.from_ for p in allocation.percentile) if allocation else 0.0
        attributes["VariantAssignmentPercentage"] = 100 - allocated
    elif reason == VariantAssignmentReason.PERCENTILE and allocation is not None:
        variant_name = event.variant.name if event.variant else None
        attributes["VariantAssignmentPercentage"] = sum(
            p.to - p.from_ for p in allocation.percentile if p.variant == variant_name
        )
    if allocation is not None and allocation.default_when_enabled is not None:
        attributes["DefaultWhenEnabled"] = allocation.default_when_enabled

    return attributes


class OpenTelemetryPublisher(TelemetryPublisher):
    """現在のスパンに FeatureFlag イベントを追加し、評価回数を記録する。"""

    async def publish(self, event: EvaluationEvent) -> None:
        attributes = build_event_attributes(event)
        feature_evaluations_total.add(
            1,
            {
                "feature_name": attributes["FeatureName"],
                "enabled": attributes["Enabled"],
            },
        )
        span = trace.get_current_span()
        if not span.is_recording():
            logger.debug("No recording span for feature evaluation event", feature=attributes["FeatureName"])
            return
        span.add_event(EVALUATION_EVENT_NAME, attributes=attributes)
