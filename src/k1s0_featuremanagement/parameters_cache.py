"""フィルターパラメータのバインド結果キャッシュ"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

from ._utils import maybe_await
from .filters.base import FilterParametersBinder
from .options import ParametersCacheOptions


class _CacheEntry:
    __slots__ = ("parameters", "settings", "absolute_expires_at", "last_access")

    def __init__(self, parameters: Any, settings: Any, now: float, absolute_ttl: float) -> None:
        self.parameters = parameters
        self.settings = settings
        self.absolute_expires_at = now + absolute_ttl
        self.last_access = now

    def is_expired(self, now: float, sliding_ttl: float) -> bool:
        return now >= self.absolute_expires_at or now - self.last_access >= sliding_ttl


class FilterParametersCache:
    """(フィーチャー名, フィルター位置) をキーにバインド済み設定を保持する。

    キャッシュは格納時と同一のパラメータオブジェクト（is 比較）に対してのみ有効。
    スライディング期限と絶対期限のうち早い方で失効する。
    """

    def __init__(
        self,
        options: ParametersCacheOptions | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._options = options or ParametersCacheOptions()
        self._clock = clock
        self._store: dict[tuple[str, int], _CacheEntry] = {}
        self._lock = threading.Lock()

    async def bind(
        self,
        feature_filter: Any,
        parameters: Mapping[str, Any] | None,
        feature_name: str,
        filter_index: int,
        cacheable: bool = True,
    ) -> Any:
        """フィルターの設定オブジェクトを返す。

        バインダーでないフィルターには生パラメータをそのまま返す。
        """
        if not isinstance(feature_filter, FilterParametersBinder):
            return parameters

        if not cacheable:
            return await maybe_await(feature_filter.bind_parameters(parameters))

        key = (feature_name.casefold(), filter_index)
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is not None and entry.is_expired(now, self._options.sliding_expiration):
                del self._store[key]
                entry = None
            if entry is not None and entry.parameters is parameters:
                entry.last_access = now
                return entry.settings

        settings = await maybe_await(feature_filter.bind_parameters(parameters))
        with self._lock:
            self._store[key] = _CacheEntry(
                parameters, settings, now, self._options.absolute_expiration
            )
        return settings

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
