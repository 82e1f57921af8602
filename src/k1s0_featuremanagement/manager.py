"""フィーチャーの有効判定とバリアント割り当て"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from typing import Any

import structlog

from ._utils import maybe_await
from .allocators import TARGETING_ALLOCATOR_NAME, FeatureVariantAllocator, TargetingVariantAllocator
from .configuration import Configuration
from .contextual import ContextualFeatureFilterEvaluator, ContextualVariantAllocatorEvaluator
from .exceptions import FeatureManagementError, FeatureManagementErrorCodes
from .filters.base import FeatureFilter
from .models import (
    EvaluationEvent,
    FeatureDefinition,
    FeatureFilterEvaluationContext,
    FeatureStatus,
    RequirementType,
    StatusOverride,
    TargetingContext,
    Variant,
    VariantAllocationContext,
    VariantAssignment,
    VariantAssignmentReason,
    VariantDefinition,
)
from .naming import ALLOCATOR_SUFFIXES, FILTER_SUFFIX
from .options import FeatureManagementOptions
from .parameters_cache import FilterParametersCache
from .providers import FeatureDefinitionProvider
from .registry import ComputeOnceCache, MetadataRegistry
from .session import SessionManager
from .targeting.accessor import TargetingContextAccessor
from .telemetry import TelemetryPublisher

logger = structlog.stdlib.get_logger(__name__)

_ALWAYS_ON_FILTERS = frozenset({"alwayson", "on"})


class FeatureManager:
    """フィーチャーの有効状態とバリアントを評価する。

    キャッシュ（フィルター解決、コンテキスト付きアダプター、パラメータバインド）は
    インスタンスが所有し、並行する評価から共有される。

    Args:
        provider: フィーチャー定義プロバイダー
        feature_filters: 登録するフィルター実装
        allocators: 登録するアロケーター実装。省略時は TargetingVariantAllocator のみ
        session_managers: 評価前後に参照 / 保存するセッションマネージャー
        telemetry_publishers: テレメトリー有効なフィーチャーの評価イベント送信先
        targeting_context_accessor: コンテキスト未指定時に使うアクセサー
        configuration: バリアントの configuration_reference を解決する設定ツリー
        options: 動作オプション
    """

    def __init__(
        self,
        provider: FeatureDefinitionProvider,
        feature_filters: Iterable[Any] = (),
        *,
        allocators: Iterable[Any] | None = None,
        session_managers: Iterable[SessionManager] = (),
        telemetry_publishers: Iterable[TelemetryPublisher] = (),
        targeting_context_accessor: TargetingContextAccessor | None = None,
        configuration: Configuration | None = None,
        options: FeatureManagementOptions | None = None,
    ) -> None:
        self._provider = provider
        self._options = options or FeatureManagementOptions()
        self._session_managers = list(session_managers)
        self._telemetry_publishers = list(telemetry_publishers)
        self._targeting_context_accessor = targeting_context_accessor
        self._configuration = configuration

        if allocators is None:
            allocators = [
                TargetingVariantAllocator(self._options.targeting, targeting_context_accessor)
            ]

        self._filters: MetadataRegistry[Any] = MetadataRegistry(
            feature_filters,
            suffixes=(FILTER_SUFFIX,),
            ambiguous_code=FeatureManagementErrorCodes.AMBIGUOUS_FEATURE_FILTER,
            kind="feature filter",
        )
        self._allocators: MetadataRegistry[Any] = MetadataRegistry(
            allocators,
            suffixes=ALLOCATOR_SUFFIXES,
            ambiguous_code=FeatureManagementErrorCodes.AMBIGUOUS_FEATURE_VARIANT_ALLOCATOR,
            kind="feature variant allocator",
        )
        self._contextual_filters: ComputeOnceCache[
            tuple[str, type], ContextualFeatureFilterEvaluator | None
        ] = ComputeOnceCache()
        self._contextual_allocators: ComputeOnceCache[
            tuple[str, type], ContextualVariantAllocatorEvaluator | None
        ] = ComputeOnceCache()
        self._parameters_cache = FilterParametersCache(self._options.parameters_cache)

    @property
    def options(self) -> FeatureManagementOptions:
        return self._options

    async def is_enabled(self, feature: str, app_context: Any = None) -> bool:
        """フィーチャーが有効かを返す。

        app_context を渡すと、その型を受け付けるコンテキスト付きフィルターが使われる。
        割り当てられたバリアントの status_override も結果に反映される。
        """
        event = await self.evaluate(feature, app_context)
        return event.enabled

    async def get_variant(
        self, feature: str, targeting_context: TargetingContext | None = None
    ) -> Variant | None:
        """フィーチャーに割り当てられたバリアントを返す。割り当てがなければ None。"""
        event = await self.evaluate(feature, targeting_context)
        return event.variant

    async def evaluate(self, feature: str, app_context: Any = None) -> EvaluationEvent:
        """有効判定とバリアント割り当てを行い、評価イベントを返す。

        Raises:
            FeatureManagementError: 定義やフィルターの欠落・競合・曖昧さがある場合
        """
        if not feature:
            raise ValueError("feature name cannot be empty")

        definition = await self._get_feature_definition(feature)
        event = EvaluationEvent(feature_definition=definition)
        if definition is None:
            return event

        if isinstance(app_context, TargetingContext):
            event.targeting_context = app_context

        event.enabled = await self._is_enabled(definition, app_context)

        allocation = definition.allocation
        if allocation is None or not definition.variants:
            event.variant_assignment_reason = VariantAssignmentReason.NONE
        else:
            if not event.enabled:
                variant_definition = definition.find_variant(allocation.default_when_disabled)
                event.variant_assignment_reason = VariantAssignmentReason.DEFAULT_WHEN_DISABLED
            else:
                assignment = await self._assign_variant(definition, event, app_context)
                if assignment is not None and assignment.variant is not None:
                    variant_definition = assignment.variant
                    event.variant_assignment_reason = assignment.reason
                else:
                    variant_definition = definition.find_variant(allocation.default_when_enabled)
                    event.variant_assignment_reason = VariantAssignmentReason.DEFAULT_WHEN_ENABLED

            event.variant_definition = variant_definition
            if variant_definition is not None:
                event.variant = self._resolve_variant(variant_definition)
                if definition.status != FeatureStatus.DISABLED:
                    if variant_definition.status_override == StatusOverride.ENABLED:
                        event.enabled = True
                    elif variant_definition.status_override == StatusOverride.DISABLED:
                        event.enabled = False

        for session_manager in self._session_managers:
            await maybe_await(session_manager.set(definition.name, event.enabled))

        if definition.telemetry.enabled:
            await self._publish_telemetry(event)

        return event

    async def get_feature_names(self) -> AsyncIterator[str]:
        """登録済みフィーチャー名を列挙する。"""
        async for definition in self._provider.get_all_feature_definitions():
            yield definition.name

    def close(self) -> None:
        """インスタンスが所有するキャッシュを破棄する。"""
        self._parameters_cache.clear()
        self._contextual_filters.clear()
        self._contextual_allocators.clear()
        self._filters.clear()
        self._allocators.clear()

    async def __aenter__(self) -> FeatureManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    async def _get_feature_definition(self, feature: str) -> FeatureDefinition | None:
        definition = await self._provider.get_feature_definition(feature)
        if definition is None:
            message = f"The feature declaration for the feature '{feature}' was not found."
            if not self._options.ignore_missing_features:
                raise FeatureManagementError(
                    code=FeatureManagementErrorCodes.MISSING_FEATURE,
                    message=message,
                )
            logger.warning(message, feature=feature)
        return definition

    async def _is_enabled(self, definition: FeatureDefinition, app_context: Any) -> bool:
        for session_manager in self._session_managers:
            session_result = await maybe_await(session_manager.get(definition.name))
            if session_result is not None:
                return session_result

        if not definition.enabled_for or definition.status == FeatureStatus.DISABLED:
            return False

        if (
            definition.requirement_type == RequirementType.ALL
            and self._options.ignore_missing_feature_filters
        ):
            raise FeatureManagementError(
                code=FeatureManagementErrorCodes.CONFLICT,
                message=(
                    "The 'ignore_missing_feature_filters' option cannot be used in combination "
                    f"with a feature of requirement type 'All' (feature '{definition.name}')."
                ),
            )

        # All は最初の False で、Any は最初の True で確定する
        enabled = definition.requirement_type == RequirementType.ALL
        target = not enabled

        for index, filter_configuration in enumerate(definition.enabled_for):
            if filter_configuration.name.casefold() in _ALWAYS_ON_FILTERS:
                if definition.requirement_type == RequirementType.ANY:
                    enabled = True
                    break
                continue

            feature_filter = self._filters.resolve(filter_configuration.name)
            if feature_filter is None:
                message = (
                    f"The feature filter '{filter_configuration.name}' specified for feature "
                    f"'{definition.name}' was not found."
                )
                if not self._options.ignore_missing_feature_filters:
                    raise FeatureManagementError(
                        code=FeatureManagementErrorCodes.MISSING_FEATURE_FILTER,
                        message=message,
                    )
                logger.warning(message, feature=definition.name, filter=filter_configuration.name)
                continue

            context = FeatureFilterEvaluationContext(
                feature_name=definition.name,
                parameters=filter_configuration.parameters,
            )
            context.settings = await self._parameters_cache.bind(
                feature_filter,
                filter_configuration.parameters,
                definition.name,
                index,
                cacheable=self._provider.cacheable,
            )

            if app_context is not None:
                contextual_filter = self._get_contextual_filter(
                    filter_configuration.name, type(app_context)
                )
                if (
                    contextual_filter is not None
                    and await contextual_filter.evaluate(context, app_context) == target
                ):
                    enabled = target
                    break

            if isinstance(feature_filter, FeatureFilter):
                if bool(await maybe_await(feature_filter.evaluate(context))) == target:
                    enabled = target
                    break

        return enabled

    async def _assign_variant(
        self, definition: FeatureDefinition, event: EvaluationEvent, app_context: Any
    ) -> VariantAssignment | None:
        allocator = self._allocators.resolve(TARGETING_ALLOCATOR_NAME)
        if allocator is None:
            raise FeatureManagementError(
                code=FeatureManagementErrorCodes.MISSING_FEATURE_VARIANT_ALLOCATOR,
                message=(
                    f"The feature variant allocator '{TARGETING_ALLOCATOR_NAME}' required by "
                    f"feature '{definition.name}' was not found."
                ),
            )

        if app_context is None:
            app_context = await self._resolve_targeting_context(definition.name)
            event.targeting_context = app_context

        allocation_context = VariantAllocationContext(feature_definition=definition)

        if app_context is not None:
            contextual_allocator = self._get_contextual_allocator(
                TARGETING_ALLOCATOR_NAME, type(app_context)
            )
            if contextual_allocator is not None:
                return await contextual_allocator.allocate(allocation_context, app_context, True)

        if isinstance(allocator, FeatureVariantAllocator):
            return await maybe_await(allocator.allocate(allocation_context, True))

        return None

    async def _resolve_targeting_context(self, feature: str) -> TargetingContext | None:
        if self._targeting_context_accessor is None:
            logger.warning(
                "No targeting context accessor is available for variant assignment",
                feature=feature,
            )
            return None
        context = await maybe_await(self._targeting_context_accessor.get_context())
        if context is None:
            logger.warning(
                "No targeting context could be found using the accessor for variant assignment",
                feature=feature,
            )
        return context

    def _get_contextual_filter(
        self, filter_name: str, app_context_type: type
    ) -> ContextualFeatureFilterEvaluator | None:
        return self._contextual_filters.get_or_add(
            (filter_name.casefold(), app_context_type),
            lambda _: ContextualFeatureFilterEvaluator.create(
                self._filters.resolve(filter_name), app_context_type
            ),
        )

    def _get_contextual_allocator(
        self, allocator_name: str, app_context_type: type
    ) -> ContextualVariantAllocatorEvaluator | None:
        return self._contextual_allocators.get_or_add(
            (allocator_name.casefold(), app_context_type),
            lambda _: ContextualVariantAllocatorEvaluator.create(
                self._allocators.resolve(allocator_name), app_context_type
            ),
        )

    def _resolve_variant(self, variant_definition: VariantDefinition) -> Variant | None:
        if variant_definition.configuration_value is not None:
            return Variant(
                name=variant_definition.name,
                configuration=variant_definition.configuration_value,
            )
        if variant_definition.configuration_reference:
            if self._configuration is None:
                logger.warning(
                    "Cannot use configuration_reference as no configuration is present",
                    variant=variant_definition.name,
                )
                return None
            return Variant(
                name=variant_definition.name,
                configuration=self._configuration.get_section(
                    variant_definition.configuration_reference
                ),
            )
        return Variant(name=variant_definition.name)

    async def _publish_telemetry(self, event: EvaluationEvent) -> None:
        if not self._telemetry_publishers:
            logger.warning(
                "The feature declaration enabled telemetry but no telemetry publisher was registered",
                feature=event.feature_definition.name if event.feature_definition else None,
            )
            return
        for publisher in self._telemetry_publishers:
            await maybe_await(publisher.publish(event))
