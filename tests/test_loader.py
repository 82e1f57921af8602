"""フィーチャー定義ローダーのユニットテスト"""

from pathlib import Path

import pytest

from k1s0_featuremanagement import (
    ConfigurationFeatureDefinitionProvider,
    FeatureManagementError,
    FeatureManagementErrorCodes,
    FeatureManager,
    FeatureStatus,
    RequirementType,
    StatusOverride,
    TargetingContext,
    TimeWindowFilter,
    load_feature_definitions,
    parse_feature_definitions,
)

YAML = """\
feature_management:
  feature_flags:
    - id: Beta
      enabled: true
    - id: Archived
      enabled: false
    - id: Holiday
      enabled: true
      conditions:
        requirement_type: all
        client_filters:
          - name: Microsoft.TimeWindow
            parameters:
              Start: "2020-01-01T00:00:00Z"
    - id: Cart
      enabled: true
      allocation:
        default_when_enabled: Small
        default_when_disabled: Small
        user:
          - variant: Big
            users: [alice]
        group:
          - variant: Big
            groups: [beta]
        percentile:
          - variant: Small
            from: 0
            to: 100
        seed: cart-seed
      variants:
        - name: Big
          configuration_value: {size: 600}
          status_override: Enabled
        - name: Small
          configuration_reference: ShoppingCart:Small
      telemetry:
        enabled: true
        metadata:
          Etag: abc
"""


@pytest.fixture
def yaml_file(tmp_path: Path) -> Path:
    path = tmp_path / "features.yaml"
    path.write_text(YAML, encoding="utf-8")
    return path


def test_load_feature_definitions(yaml_file: Path) -> None:
    """YAML ファイルから定義が読み込めること。"""
    definitions = {d.name: d for d in load_feature_definitions(yaml_file)}
    assert set(definitions) == {"Beta", "Archived", "Holiday", "Cart"}


def test_enabled_without_filters_is_always_on(yaml_file: Path) -> None:
    """フィルター指定のない有効フィーチャーには AlwaysOn が補われること。"""
    beta = {d.name: d for d in load_feature_definitions(yaml_file)}["Beta"]
    assert [f.name for f in beta.enabled_for] == ["AlwaysOn"]
    assert beta.status == FeatureStatus.CONDITIONAL


def test_disabled_feature(yaml_file: Path) -> None:
    """enabled: false のフィーチャーは DISABLED でフィルターなし。"""
    archived = {d.name: d for d in load_feature_definitions(yaml_file)}["Archived"]
    assert archived.status == FeatureStatus.DISABLED
    assert archived.enabled_for == ()


def test_conditions(yaml_file: Path) -> None:
    """requirement_type とフィルターが読み込まれること。"""
    holiday = {d.name: d for d in load_feature_definitions(yaml_file)}["Holiday"]
    assert holiday.requirement_type == RequirementType.ALL
    assert holiday.enabled_for[0].name == "Microsoft.TimeWindow"
    assert holiday.enabled_for[0].parameters == {"Start": "2020-01-01T00:00:00Z"}


def test_allocation_and_variants(yaml_file: Path) -> None:
    """割り当て・バリアント・テレメトリー設定が読み込まれること。"""
    cart = {d.name: d for d in load_feature_definitions(yaml_file)}["Cart"]
    assert cart.allocation is not None
    assert cart.allocation.user[0].users == ("alice",)
    assert cart.allocation.group[0].groups == ("beta",)
    assert cart.allocation.percentile[0].from_ == 0
    assert cart.allocation.percentile[0].to == 100
    assert cart.allocation.seed == "cart-seed"
    big = cart.find_variant("Big")
    assert big is not None
    assert big.configuration_value == {"size": 600}
    assert big.status_override == StatusOverride.ENABLED
    small = cart.find_variant("Small")
    assert small is not None
    assert small.configuration_reference == "ShoppingCart:Small"
    assert cart.telemetry.enabled is True
    assert cart.telemetry.metadata == {"Etag": "abc"}


def test_invalid_requirement_type() -> None:
    """不明な requirement_type は INVALID_CONFIGURATION_SETTING。"""
    data = {
        "feature_management": {
            "feature_flags": [
                {"id": "X", "enabled": True, "conditions": {"requirement_type": "Most"}}
            ]
        }
    }
    with pytest.raises(FeatureManagementError) as exc_info:
        parse_feature_definitions(data)
    assert exc_info.value.code == FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING


def test_missing_id() -> None:
    """id のないフィーチャーはエラー。"""
    data = {"feature_management": {"feature_flags": [{"enabled": True}]}}
    with pytest.raises(FeatureManagementError):
        parse_feature_definitions(data)


def test_feature_flags_must_be_list() -> None:
    """feature_flags がリストでなければエラー。"""
    with pytest.raises(FeatureManagementError):
        parse_feature_definitions({"feature_management": {"feature_flags": {"id": "X"}}})


def test_empty_document() -> None:
    """空のドキュメントは定義なし。"""
    assert parse_feature_definitions({}) == []


def test_missing_file(tmp_path: Path) -> None:
    """存在しないファイルはエラー。"""
    with pytest.raises(FeatureManagementError) as exc_info:
        load_feature_definitions(tmp_path / "missing.yaml")
    assert exc_info.value.code == FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING


def test_invalid_yaml(tmp_path: Path) -> None:
    """YAML 構文エラーはエラー。"""
    path = tmp_path / "bad.yaml"
    path.write_text("feature_management: [unclosed", encoding="utf-8")
    with pytest.raises(FeatureManagementError) as exc_info:
        load_feature_definitions(path)
    assert isinstance(exc_info.value.__cause__, Exception)


async def test_provider_end_to_end(yaml_file: Path) -> None:
    """読み込んだ定義で FeatureManager が評価できること。"""
    provider = ConfigurationFeatureDefinitionProvider.from_yaml(yaml_file)
    manager = FeatureManager(provider, [TimeWindowFilter()])
    assert await manager.is_enabled("beta") is True
    assert await manager.is_enabled("Archived") is False
    assert await manager.is_enabled("Holiday") is True
    variant = await manager.get_variant("Cart", TargetingContext(user_id="alice"))
    assert variant is not None
    assert variant.name == "Big"
    assert variant.configuration == {"size": 600}


async def test_provider_lists_definitions() -> None:
    """from_mapping で作成したプロバイダーが全定義を列挙すること。"""
    provider = ConfigurationFeatureDefinitionProvider.from_mapping(
        {"feature_management": {"feature_flags": [{"id": "A"}, {"id": "B"}]}}
    )
    assert provider.cacheable is True
    names = [d.name async for d in provider.get_all_feature_definitions()]
    assert names == ["A", "B"]
