"""フィルター名照合のユニットテスト"""

import pytest
from k1s0_featuremanagement.naming import (
    ALLOCATOR_SUFFIXES,
    FILTER_SUFFIX,
    is_matching_reference,
    metadata_name,
)


class CustomFilter:
    pass


class AliasedFilter:
    alias = "MyOrg.Aliased"


class Filter:
    pass


class DayOfWeekAssigner:
    pass


def test_metadata_name_strips_suffix() -> None:
    """クラス名からサフィックスが取り除かれること。"""
    assert metadata_name(CustomFilter(), (FILTER_SUFFIX,)) == "Custom"


def test_metadata_name_prefers_alias() -> None:
    """alias があればそれを使うこと。"""
    assert metadata_name(AliasedFilter(), (FILTER_SUFFIX,)) == "MyOrg.Aliased"


def test_metadata_name_keeps_bare_suffix() -> None:
    """サフィックスだけのクラス名はそのまま。"""
    assert metadata_name(Filter(), (FILTER_SUFFIX,)) == "Filter"


def test_metadata_name_allocator_suffixes() -> None:
    """Assigner サフィックスも取り除かれること。"""
    assert metadata_name(DayOfWeekAssigner(), ALLOCATOR_SUFFIXES) == "DayOfWeek"


def test_matching_is_case_insensitive() -> None:
    """大文字小文字を区別しないこと。"""
    assert is_matching_reference("custom", "Custom", FILTER_SUFFIX)


def test_reference_without_suffix_matches_suffixed_metadata() -> None:
    """サフィックスなしの参照がサフィックス付き正規名に一致すること。"""
    assert is_matching_reference("Percentage", "PercentageFilter", FILTER_SUFFIX)


def test_short_reference_matches_namespaced_metadata() -> None:
    """名前空間なしの参照は名前空間付き正規名の末尾に一致すること。"""
    assert is_matching_reference("Targeting", "Microsoft.Targeting", FILTER_SUFFIX)


def test_namespaced_reference_requires_exact_match() -> None:
    """名前空間付きの参照は完全一致のみ。"""
    assert is_matching_reference("Microsoft.Targeting", "Microsoft.Targeting", FILTER_SUFFIX)
    assert not is_matching_reference("Other.Targeting", "Microsoft.Targeting", FILTER_SUFFIX)
    assert not is_matching_reference("Microsoft.Targeting", "Targeting", FILTER_SUFFIX)


def test_different_names_do_not_match() -> None:
    """異なる名前は一致しないこと。"""
    assert not is_matching_reference("Percentage", "TimeWindow", FILTER_SUFFIX)


def test_empty_reference_raises() -> None:
    """空の参照名はエラー。"""
    with pytest.raises(ValueError):
        is_matching_reference("", "Custom", FILTER_SUFFIX)
    with pytest.raises(ValueError):
        is_matching_reference("Custom", "", FILTER_SUFFIX)
