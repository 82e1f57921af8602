"""ターゲティングコンテキストアクセサー"""

from __future__ import annotations

import contextvars
from abc import ABC, abstractmethod
from typing import Any

from ..models import TargetingContext

_targeting_context_var: contextvars.ContextVar[TargetingContext | None] = (
    contextvars.ContextVar("targeting_context", default=None)
)


class TargetingContextAccessor(ABC):
    """呼び出し元がコンテキストを渡さなかった場合に使うアクセサー。"""

    @abstractmethod
    async def get_context(self) -> TargetingContext | None:
        ...


class ContextVarTargetingContextAccessor(TargetingContextAccessor):
    """contextvars でリクエストスコープのコンテキストを保持するアクセサー。"""

    async def get_context(self) -> TargetingContext | None:
        return _targeting_context_var.get()

    @staticmethod
    def set_context(context: TargetingContext | None) -> contextvars.Token[Any]:
        """現在のコンテキストにターゲティングコンテキストをセットする。"""
        return _targeting_context_var.set(context)

    @staticmethod
    def reset_context(token: contextvars.Token[Any]) -> None:
        """set_context で取得したトークンでリセットする。"""
        _targeting_context_var.reset(token)
