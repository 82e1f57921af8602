"""フィーチャー管理オプション（pydantic BaseModel）"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TargetingEvaluationOptions(BaseModel):
    """ターゲティング評価の設定。"""

    ignore_case: bool = False


class ParametersCacheOptions(BaseModel):
    """フィルターパラメータのバインド結果キャッシュ設定（秒）。"""

    sliding_expiration: float = Field(default=300.0, gt=0)
    absolute_expiration: float = Field(default=86400.0, gt=0)


class FeatureManagementOptions(BaseModel):
    """FeatureManager の動作設定。

    ignore_missing_feature_filters は requirement_type=All のフィーチャーとは併用できない。
    """

    ignore_missing_features: bool = True
    ignore_missing_feature_filters: bool = False
    targeting: TargetingEvaluationOptions = Field(default_factory=TargetingEvaluationOptions)
    parameters_cache: ParametersCacheOptions = Field(default_factory=ParametersCacheOptions)
