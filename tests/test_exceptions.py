"""exceptions のユニットテスト"""

from k1s0_featuremanagement import FeatureManagementError, FeatureManagementErrorCodes


def test_str_includes_code() -> None:
    """str() がコード付きで整形されること。"""
    err = FeatureManagementError(
        code=FeatureManagementErrorCodes.MISSING_FEATURE,
        message="feature 'x' not found",
    )
    assert str(err) == "MISSING_FEATURE: feature 'x' not found"
    assert err.code == "MISSING_FEATURE"


def test_cause_is_chained() -> None:
    """cause が __cause__ に設定されること。"""
    cause = ValueError("bad")
    err = FeatureManagementError(
        code=FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING,
        message="invalid",
        cause=cause,
    )
    assert err.__cause__ is cause


def test_no_cause() -> None:
    """cause 未指定なら __cause__ は None。"""
    err = FeatureManagementError(code=FeatureManagementErrorCodes.CONFLICT, message="x")
    assert err.__cause__ is None
