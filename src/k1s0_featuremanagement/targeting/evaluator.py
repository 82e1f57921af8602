"""ターゲティング評価（純粋関数）

パーセンタイルは SHA-256 ハッシュの先頭 4 バイト（リトルエンディアン）から求める。
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from ..models import TargetingContext
from .settings import Audience, TargetingFilterSettings

_UINT32_MAX = 2**32 - 1


def _equals(a: str, b: str, ignore_case: bool) -> bool:
    if ignore_case:
        return a.casefold() == b.casefold()
    return a == b


def context_percentage(context_id: str) -> float:
    """コンテキスト ID を [0, 100] のパーセンタイルへ写像する。"""
    digest = hashlib.sha256(context_id.encode("utf-8")).digest()
    marker = int.from_bytes(digest[:4], "little")
    return marker / _UINT32_MAX * 100


def is_targeted_user(user_id: str | None, users: Iterable[str], ignore_case: bool = False) -> bool:
    """ユーザー ID が許可リストに含まれるか。"""
    if user_id is None:
        return False
    return any(_equals(user_id, user, ignore_case) for user in users)


def is_targeted_group(
    groups: Iterable[str], allowed_groups: Iterable[str], ignore_case: bool = False
) -> bool:
    """呼び出し元のグループのいずれかが許可リストに含まれるか。"""
    allowed = list(allowed_groups)
    return any(
        _equals(group, candidate, ignore_case) for group in groups for candidate in allowed
    )


def is_targeted_percentile(
    context: TargetingContext,
    from_: float,
    to: float,
    ignore_case: bool = False,
    seed: str = "",
) -> bool:
    """ユーザーのパーセンタイルが [from_, to) に入るか。to == 100 の場合は 100 も含む。"""
    user_id = context.user_id or ""
    if ignore_case:
        user_id = user_id.lower()
    percentage = context_percentage(f"{seed}\n{user_id}")
    if to == 100 and percentage == 100:
        return from_ <= percentage
    return from_ <= percentage < to


def _is_excluded(audience: Audience, context: TargetingContext, ignore_case: bool) -> bool:
    exclusion = audience.exclusion
    if exclusion is None:
        return False
    if is_targeted_user(context.user_id, exclusion.users, ignore_case):
        return True
    return is_targeted_group(context.groups, exclusion.groups, ignore_case)


def is_targeted_audience(
    settings: TargetingFilterSettings,
    context: TargetingContext,
    ignore_case: bool = False,
    hint: str = "",
) -> bool:
    """TargetingFilter 用のオーディエンス判定。

    除外 → ユーザー指定 → グループロールアウト → デフォルトロールアウトの順に評価する。
    hint には通常フィーチャー名を渡し、フィーチャー間の割り当てを無相関にする。
    """
    audience = settings.audience

    if _is_excluded(audience, context, ignore_case):
        return False

    if is_targeted_user(context.user_id, audience.users, ignore_case):
        return True

    user_id = context.user_id or ""
    if ignore_case:
        user_id = user_id.lower()

    for group in context.groups:
        group_key = group.lower() if ignore_case else group
        rollout = next(
            (g for g in audience.groups if _equals(g.name, group, ignore_case)),
            None,
        )
        if rollout is None:
            continue
        if context_percentage(f"{user_id}\n{hint}\n{group_key}") < rollout.rollout_percentage:
            return True

    return context_percentage(f"{user_id}\n{hint}") < audience.default_rollout_percentage
