"""featuremanagement データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RequirementType(str, Enum):
    """フィルター評価の要件タイプ。"""

    ANY = "Any"
    ALL = "All"


class FeatureStatus(str, Enum):
    """フィーチャーの状態。DISABLED は常に無効。"""

    CONDITIONAL = "Conditional"
    DISABLED = "Disabled"


class StatusOverride(str, Enum):
    """バリアント割り当て時に有効状態を上書きする指定。"""

    NONE = "None"
    ENABLED = "Enabled"
    DISABLED = "Disabled"


class VariantAssignmentReason(str, Enum):
    """バリアントが割り当てられた理由。"""

    NONE = "None"
    DEFAULT_WHEN_DISABLED = "DefaultWhenDisabled"
    DEFAULT_WHEN_ENABLED = "DefaultWhenEnabled"
    USER = "User"
    GROUP = "Group"
    PERCENTILE = "Percentile"


@dataclass(frozen=True)
class FilterConfiguration:
    """フィーチャーに設定されたフィルター（名前と生パラメータ）。"""

    name: str
    parameters: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class UserAllocation:
    """ユーザー単位のバリアント割り当て。"""

    variant: str | None
    users: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroupAllocation:
    """グループ単位のバリアント割り当て。"""

    variant: str | None
    groups: tuple[str, ...] = ()


@dataclass(frozen=True)
class PercentileAllocation:
    """パーセンタイル区間 [from_, to) によるバリアント割り当て。"""

    variant: str | None
    from_: float = 0.0
    to: float = 0.0


@dataclass(frozen=True)
class Allocation:
    """バリアント選択ルール。"""

    default_when_enabled: str | None = None
    default_when_disabled: str | None = None
    user: tuple[UserAllocation, ...] = ()
    group: tuple[GroupAllocation, ...] = ()
    percentile: tuple[PercentileAllocation, ...] = ()
    seed: str | None = None

    def effective_seed(self, feature_name: str) -> str:
        """seed 未指定時はフィーチャー名から導出する。"""
        if self.seed is not None:
            return self.seed
        return f"allocation\n{feature_name}"


@dataclass(frozen=True)
class VariantDefinition:
    """フィーチャーのバリアント定義。"""

    name: str
    configuration_value: Any = None
    configuration_reference: str | None = None
    status_override: StatusOverride = StatusOverride.NONE


@dataclass(frozen=True)
class TelemetryConfiguration:
    """フィーチャー単位のテレメトリー設定。"""

    enabled: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FeatureDefinition:
    """フィーチャー定義。評価エンジンからは読み取り専用。"""

    name: str
    enabled_for: tuple[FilterConfiguration, ...] = ()
    requirement_type: RequirementType = RequirementType.ANY
    status: FeatureStatus = FeatureStatus.CONDITIONAL
    allocation: Allocation | None = None
    variants: tuple[VariantDefinition, ...] = ()
    telemetry: TelemetryConfiguration = field(default_factory=TelemetryConfiguration)

    def find_variant(self, name: str | None) -> VariantDefinition | None:
        """名前でバリアントを探す。見つからなければ None。"""
        if not name:
            return None
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None


@dataclass(frozen=True)
class TargetingContext:
    """ターゲティング評価に使う呼び出し元情報。"""

    user_id: str | None = None
    groups: tuple[str, ...] = ()


@dataclass
class FeatureFilterEvaluationContext:
    """フィルター評価時に渡されるコンテキスト。"""

    feature_name: str
    parameters: Mapping[str, Any] | None = None
    settings: Any = None


@dataclass(frozen=True)
class VariantAllocationContext:
    """バリアント割り当て時に渡されるコンテキスト。"""

    feature_definition: FeatureDefinition


@dataclass(frozen=True)
class VariantAssignment:
    """アロケーターの割り当て結果。"""

    variant: VariantDefinition | None
    reason: VariantAssignmentReason


@dataclass(frozen=True)
class Variant:
    """呼び出し元へ返す解決済みバリアント。"""

    name: str
    configuration: Any = None


@dataclass
class EvaluationEvent:
    """フィーチャー評価 1 回分の記録。テレメトリー送信に使う。"""

    feature_definition: FeatureDefinition | None
    targeting_context: TargetingContext | None = None
    enabled: bool = False
    variant: Variant | None = None
    variant_definition: VariantDefinition | None = None
    variant_assignment_reason: VariantAssignmentReason = VariantAssignmentReason.NONE
