"""フィーチャーフィルター抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import FeatureManagementError, FeatureManagementErrorCodes
from ..models import FeatureFilterEvaluationContext

M = TypeVar("M", bound=BaseModel)


class FeatureFilter(ABC):
    """フィーチャーの有効状態を判定するフィルター。

    alias を設定するとクラス名の代わりに参照名として使われる。
    """

    alias: ClassVar[str | None] = None

    @abstractmethod
    async def evaluate(self, context: FeatureFilterEvaluationContext) -> bool:
        """フィーチャーを有効とするなら True を返す。"""
        ...


class ContextualFeatureFilter(ABC):
    """アプリケーションコンテキストを受け取るフィルター。

    context_types に受け付けるコンテキスト型を宣言する。呼び出し元のコンテキスト型が
    そのいずれかのサブクラスであれば適用される。
    """

    alias: ClassVar[str | None] = None
    context_types: ClassVar[tuple[type, ...]] = (object,)

    @abstractmethod
    async def evaluate_with_context(
        self, context: FeatureFilterEvaluationContext, app_context: Any
    ) -> bool:
        ...


class FilterParametersBinder(ABC):
    """生パラメータを設定オブジェクトへ変換できるフィルター。"""

    @abstractmethod
    def bind_parameters(self, parameters: Mapping[str, Any] | None) -> Any:
        ...


def bind_settings(model: type[M], parameters: Mapping[str, Any] | None, filter_name: str) -> M:
    """生パラメータを pydantic モデルへバインドする。

    Raises:
        FeatureManagementError: パラメータがモデルに適合しない場合
    """
    try:
        return model.model_validate(dict(parameters or {}))
    except ValidationError as e:
        raise FeatureManagementError(
            code=FeatureManagementErrorCodes.INVALID_CONFIGURATION_SETTING,
            message=f"Invalid parameters for feature filter '{filter_name}': {e}",
            cause=e,
        ) from e
