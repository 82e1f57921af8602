"""ターゲティングフィルターの設定モデル"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

_CONFIG = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class GroupRollout(BaseModel):
    """グループ単位のロールアウト率。"""

    model_config = _CONFIG

    name: str
    rollout_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class BasicAudience(BaseModel):
    """ユーザーとグループの集合。"""

    model_config = _CONFIG

    users: list[str] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)


class Audience(BaseModel):
    """ターゲティング対象のオーディエンス。"""

    model_config = _CONFIG

    users: list[str] = Field(default_factory=list)
    groups: list[GroupRollout] = Field(default_factory=list)
    default_rollout_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    exclusion: BasicAudience | None = None


class TargetingFilterSettings(BaseModel):
    """TargetingFilter のパラメータ。"""

    model_config = _CONFIG

    audience: Audience = Field(default_factory=Audience)
