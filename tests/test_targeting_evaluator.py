"""ターゲティング評価関数のユニットテスト"""

import hashlib

from k1s0_featuremanagement import TargetingContext
from k1s0_featuremanagement.targeting import (
    Audience,
    BasicAudience,
    GroupRollout,
    TargetingFilterSettings,
    context_percentage,
    is_targeted_audience,
    is_targeted_group,
    is_targeted_percentile,
    is_targeted_user,
)


def test_context_percentage_matches_sha256_prefix() -> None:
    """SHA-256 の先頭 4 バイト（リトルエンディアン）から求めること。"""
    digest = hashlib.sha256(b"s\nu1").digest()
    expected = int.from_bytes(digest[:4], "little") / (2**32 - 1) * 100
    assert context_percentage("s\nu1") == expected
    assert 0 <= context_percentage("s\nu1") <= 100


def test_percentile_is_deterministic() -> None:
    """同じ seed とユーザーなら毎回同じ結果になること。"""
    ctx = TargetingContext(user_id="user-42")
    results = {is_targeted_percentile(ctx, 0, 50, seed="seed") for _ in range(20)}
    assert len(results) == 1


def test_percentile_coverage_is_balanced() -> None:
    """十分なサンプルで [0,50) と [50,100) がほぼ半々になること。"""
    total = 100_000
    in_first = sum(
        1
        for i in range(total)
        if is_targeted_percentile(TargetingContext(user_id=f"user-{i}"), 0, 50, seed="coverage")
    )
    assert abs(in_first / total - 0.5) < 0.02


def test_percentile_buckets_partition_users() -> None:
    """隣接する区間はちょうど一方だけに一致すること。"""
    for i in range(1000):
        ctx = TargetingContext(user_id=f"u{i}")
        first = is_targeted_percentile(ctx, 0, 30, seed="s")
        second = is_targeted_percentile(ctx, 30, 100, seed="s")
        assert first != second


def test_percentile_full_range_includes_everyone() -> None:
    """[0, 100] は全ユーザーに一致すること。"""
    assert all(
        is_targeted_percentile(TargetingContext(user_id=f"u{i}"), 0, 100, seed="x")
        for i in range(500)
    )


def test_percentile_ignore_case() -> None:
    """ignore_case ならユーザー ID の大小文字が結果に影響しないこと。"""
    for i in range(200):
        upper = TargetingContext(user_id=f"USER-{i}")
        lower = TargetingContext(user_id=f"user-{i}")
        assert is_targeted_percentile(upper, 0, 50, True, "s") == is_targeted_percentile(
            lower, 0, 50, True, "s"
        )


def test_is_targeted_user() -> None:
    """ユーザー ID の一致判定。"""
    assert is_targeted_user("alice", ["alice", "bob"])
    assert not is_targeted_user("Alice", ["alice"])
    assert is_targeted_user("Alice", ["alice"], ignore_case=True)
    assert not is_targeted_user(None, ["alice"])


def test_is_targeted_group() -> None:
    """グループの一致判定。"""
    assert is_targeted_group(["ring0", "beta"], ["beta"])
    assert not is_targeted_group(["BETA"], ["beta"])
    assert is_targeted_group(["BETA"], ["beta"], ignore_case=True)
    assert not is_targeted_group([], ["beta"])


def test_audience_user_is_targeted() -> None:
    """ユーザー指定に含まれれば対象。"""
    settings = TargetingFilterSettings(audience=Audience(users=["alice"]))
    assert is_targeted_audience(settings, TargetingContext(user_id="alice"), hint="F")


def test_audience_exclusion_wins() -> None:
    """除外指定はユーザー指定より優先されること。"""
    settings = TargetingFilterSettings(
        audience=Audience(
            users=["alice"],
            default_rollout_percentage=100,
            exclusion=BasicAudience(users=["alice"]),
        )
    )
    assert not is_targeted_audience(settings, TargetingContext(user_id="alice"), hint="F")


def test_audience_group_exclusion() -> None:
    """除外グループに属するユーザーは対象外。"""
    settings = TargetingFilterSettings(
        audience=Audience(
            default_rollout_percentage=100,
            exclusion=BasicAudience(groups=["blocked"]),
        )
    )
    ctx = TargetingContext(user_id="bob", groups=("blocked",))
    assert not is_targeted_audience(settings, ctx, hint="F")


def test_audience_group_rollout() -> None:
    """グループロールアウト 100% なら対象、0% なら対象外。"""
    ctx = TargetingContext(user_id="bob", groups=("beta",))
    full = TargetingFilterSettings(
        audience=Audience(groups=[GroupRollout(name="beta", rollout_percentage=100)])
    )
    none = TargetingFilterSettings(
        audience=Audience(groups=[GroupRollout(name="beta", rollout_percentage=0)])
    )
    assert is_targeted_audience(full, ctx, hint="F")
    assert not is_targeted_audience(none, ctx, hint="F")


def test_audience_default_rollout_uses_hint() -> None:
    """デフォルトロールアウトは user_id とヒントのハッシュで決まること。"""
    ctx = TargetingContext(user_id="carol")
    percentage = context_percentage("carol\nFeatureX")
    above = TargetingFilterSettings(
        audience=Audience(default_rollout_percentage=min(100.0, percentage + 0.001))
    )
    below = TargetingFilterSettings(audience=Audience(default_rollout_percentage=percentage))
    assert is_targeted_audience(above, ctx, hint="FeatureX")
    assert not is_targeted_audience(below, ctx, hint="FeatureX")
