"""フィルター / アロケーター実装のメタデータレジストリ"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Iterable
from typing import Generic, TypeVar

from .exceptions import FeatureManagementError
from .naming import is_matching_reference, metadata_name

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
T = TypeVar("T")

_MISSING = object()


class ComputeOnceCache(Generic[K, V]):
    """キーごとに一度だけ値を計算して保持するスレッドセーフなキャッシュ。

    None も結果としてキャッシュする。競合時に重複計算が起きても最初に格納された値が残る。
    """

    def __init__(self) -> None:
        self._store: dict[K, V] = {}
        self._lock = threading.Lock()

    def get_or_add(self, key: K, factory: Callable[[K], V]) -> V:
        value = self._store.get(key, _MISSING)
        if value is not _MISSING:
            return value  # type: ignore[return-value]
        computed = factory(key)
        with self._lock:
            return self._store.setdefault(key, computed)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class MetadataRegistry(Generic[T]):
    """設定上の名前から登録済み実装を解決する。

    Args:
        implementations: 登録済みの実装インスタンス
        suffixes: クラス名から取り除くサフィックス（先頭が照合用サフィックス）
        ambiguous_code: 複数一致時に送出するエラーコード
        kind: ログ / エラーメッセージ用の種別名
    """

    def __init__(
        self,
        implementations: Iterable[T],
        suffixes: tuple[str, ...],
        ambiguous_code: str,
        kind: str,
    ) -> None:
        self._implementations = list(implementations)
        self._suffixes = suffixes
        self._ambiguous_code = ambiguous_code
        self._kind = kind
        self._cache: ComputeOnceCache[str, T | None] = ComputeOnceCache()

    @property
    def implementations(self) -> list[T]:
        return list(self._implementations)

    def resolve(self, name: str) -> T | None:
        """名前に一致する実装を返す。一致しなければ None。

        Raises:
            FeatureManagementError: 複数の実装が一致した場合
        """
        if not name:
            raise ValueError(f"{self._kind} name cannot be empty")
        return self._cache.get_or_add(name.casefold(), lambda _: self._scan(name))

    def clear(self) -> None:
        self._cache.clear()

    def _scan(self, name: str) -> T | None:
        matches = [
            implementation
            for implementation in self._implementations
            if self._is_match(name, implementation)
        ]
        if len(matches) > 1:
            raise FeatureManagementError(
                code=self._ambiguous_code,
                message=f"Multiple {self._kind}s match the configured {self._kind} named '{name}'.",
            )
        return matches[0] if matches else None

    def _is_match(self, name: str, implementation: T) -> bool:
        canonical = metadata_name(implementation, self._suffixes)
        return any(
            is_matching_reference(name, canonical, suffix) for suffix in self._suffixes
        )
