"""featuremanagement ライブラリの例外型定義"""

from __future__ import annotations


class FeatureManagementError(Exception):
    """featuremanagement ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class FeatureManagementErrorCodes:
    """エラーコード定数。"""

    MISSING_FEATURE: str = "MISSING_FEATURE"
    MISSING_FEATURE_FILTER: str = "MISSING_FEATURE_FILTER"
    AMBIGUOUS_FEATURE_FILTER: str = "AMBIGUOUS_FEATURE_FILTER"
    MISSING_FEATURE_VARIANT_ALLOCATOR: str = "MISSING_FEATURE_VARIANT_ALLOCATOR"
    AMBIGUOUS_FEATURE_VARIANT_ALLOCATOR: str = "AMBIGUOUS_FEATURE_VARIANT_ALLOCATOR"
    CONFLICT: str = "CONFLICT"
    INVALID_CONFIGURATION_SETTING: str = "INVALID_CONFIGURATION_SETTING"
