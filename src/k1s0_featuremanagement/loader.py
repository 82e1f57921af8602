"""フィーチャー定義の読み込み（feature_management.feature_flags スキーマ）"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import FeatureManagementError, FeatureManagementErrorCodes
from .models import (
    Allocation,
    FeatureDefinition,
    FeatureStatus,
    FilterConfiguration,
    GroupAllocation,
    PercentileAllocation,
    RequirementType,
    StatusOverride,
    TelemetryConfiguration,
    UserAllocation,
    VariantDefinition,
)
from .providers import FeatureDefinitionProvider

E = TypeVar("E", bound=Enum)

_SCHEMA_CONFIG = ConfigDict(extra="ignore", populate_by_name=True)


def _parse_enum(enum_type: type[E], raw: Any) -> E:
    if isinstance(raw, enum_type):
        return raw
    for member in enum_type:
        if str(raw).casefold() == member.value.casefold():
            return member
    raise ValueError(f"'{raw}' is not a valid {enum_type.__name__}")


class _ClientFilterSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    name: str
    parameters: dict[str, Any] | None = None


class _ConditionsSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    requirement_type: RequirementType = RequirementType.ANY
    client_filters: list[_ClientFilterSchema] = Field(default_factory=list)

    @field_validator("requirement_type", mode="before")
    @classmethod
    def parse_requirement_type(cls, v: Any) -> RequirementType:
        if v is None:
            return RequirementType.ANY
        return _parse_enum(RequirementType, v)


class _UserAllocationSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    variant: str | None = None
    users: list[str] = Field(default_factory=list)


class _GroupAllocationSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    variant: str | None = None
    groups: list[str] = Field(default_factory=list)


class _PercentileAllocationSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    variant: str | None = None
    from_: float = Field(default=0.0, alias="from")
    to: float = 0.0


class _AllocationSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    default_when_enabled: str | None = None
    default_when_disabled: str | None = None
    user: list[_UserAllocationSchema] = Field(default_factory=list)
    group: list[_GroupAllocationSchema] = Field(default_factory=list)
    percentile: list[_PercentileAllocationSchema] = Field(default_factory=list)
    seed: str | None = None


class _VariantSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    name: str
    configuration_value: Any = None
    configuration_reference: str | None = None
    status_override: StatusOverride = StatusOverride.NONE

    @field_validator("status_override", mode="before")
    @classmethod
    def parse_status_override(cls, v: Any) -> StatusOverride:
        if v is None:
            return StatusOverride.NONE
        return _parse_enum(StatusOverride, v)


class _TelemetrySchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    enabled: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)


class _FeatureFlagSchema(BaseModel):
    model_config = _SCHEMA_CONFIG

    id: str
    enabled: bool = False
    conditions: _ConditionsSchema = Field(default_factory=_ConditionsSchema)
    allocation: _AllocationSchema | None = None
    variants: list[_VariantSchema] = Field(default_factory=list)
    telemetry: _TelemetrySchema = Field(default_factory=_TelemetrySchema)

    def to_definition(self) -> FeatureDefinition:
        enabled_for: tuple[FilterConfiguration, ...] = ()
        status = FeatureStatus.DISABLED
        if self.enabled:
            status = FeatureStatus.CONDITIONAL
            enabled_for = tuple(
                FilterConfiguration(name=f.name, parameters=f.parameters)
                for f in self.conditions.client_filters
            ) or (FilterConfiguration(name="AlwaysOn"),)

        allocation = None
        if self.allocation is not None:
            a = self.allocation
            allocation = Allocation(
                default_when_enabled=a.default_when_enabled,
                default_when_disabled=a.default_when_disabled,
                user=tuple(UserAllocation(u.variant, tuple(u.users)) for u in a.user),
                group=tuple(GroupAllocation(g.variant, tuple(g.groups)) for g in a.group),
                percentile=tuple(
                    PercentileAllocation(p.variant, p.from_, p.to) for p in a.percentile
                ),
                seed=a.seed,
            )

        return FeatureDefinition(
            name=self.id,
            enabled_for=enabled_for,
            requirement_type=self.conditions.requirement_type,
            status=status,
            allocation=allocation,
            variants=tuple(
                VariantDefinition(
                    name=v.name,
                    configuration_value=v.configuration_value,
                    configuration_reference=v.configuration_reference,
                    status_override=v.status_override,
                )
                for v in self.variants
            ),
            telemetry=TelemetryConfiguration(
                enabled=self.telemetry.enabled,
                metadata=dict(self.telemetry.metadata),
            ),
        )


def parse_feature_definitions(data: Mapping[str, Any]) -> list[FeatureDefinition]:
    """feature_management.feature_flags 形式の辞書からフィーチャー定義を生成する。

    enabled が false のフィーチャーは DISABLED 状態になる。
    enabled が true でフィルター指定がなければ AlwaysOn が補われる。

    Raises:
        FeatureManagementError: スキーマに適合しない場合
    """
    section = data.get("feature_management") or {}
    flags = section.get("feature_flags") or []
    if not isinstance(flags, list):
        raise FeatureManagementError(
            code=FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING,
            message="'feature_management.feature_flags' must be a list",
        )

    definitions = []
    for raw in flags:
        try:
            flag = _FeatureFlagSchema.model_validate(raw)
        except ValidationError as e:
            raise FeatureManagementError(
                code=FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING,
                message=f"Invalid feature flag definition: {e}",
                cause=e,
            ) from e
        definitions.append(flag.to_definition())
    return definitions


def load_feature_definitions(path: Path) -> list[FeatureDefinition]:
    """YAML ファイルからフィーチャー定義を読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FeatureManagementError(
            code=FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING,
            message=f"Failed to read feature management file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise FeatureManagementError(
            code=FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    return parse_feature_definitions(data)


class ConfigurationFeatureDefinitionProvider(FeatureDefinitionProvider):
    """設定データから生成した定義を返すプロバイダー。

    同名のフィーチャーが複数ある場合は後勝ち。
    """

    cacheable = True

    def __init__(self, definitions: Iterable[FeatureDefinition]) -> None:
        self._definitions: dict[str, FeatureDefinition] = {}
        for definition in definitions:
            self._definitions[definition.name.casefold()] = definition

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigurationFeatureDefinitionProvider:
        return cls(parse_feature_definitions(data))

    @classmethod
    def from_yaml(cls, path: Path) -> ConfigurationFeatureDefinitionProvider:
        return cls(load_feature_definitions(path))

    async def get_feature_definition(self, name: str) -> FeatureDefinition | None:
        return self._definitions.get(name.casefold())

    async def get_all_feature_definitions(self) -> AsyncIterator[FeatureDefinition]:
        for definition in self._definitions.values():
            yield definition
