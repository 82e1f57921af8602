"""フィルター / アロケーター名の照合"""

from __future__ import annotations

from typing import Any

FILTER_SUFFIX = "Filter"
ALLOCATOR_SUFFIXES = ("Allocator", "Assigner")


def metadata_name(implementation: Any, suffixes: tuple[str, ...]) -> str:
    """実装の正規名を返す。

    alias 属性があればそれを使い、なければクラス名から既知のサフィックスを取り除く。
    """
    alias = getattr(implementation, "alias", None)
    if alias:
        return str(alias)
    name = type(implementation).__name__
    for suffix in suffixes:
        if len(name) > len(suffix) and name.lower().endswith(suffix.lower()):
            return name[: -len(suffix)]
    return name


def is_matching_reference(reference: str, metadata: str, suffix: str) -> bool:
    """設定上の参照名が実装の正規名に一致するかを判定する。

    'Custom' は 'CustomFilter' にも 'MyOrg.Custom' にも一致するが、
    'MyOrg.Custom' は完全一致のみ。
    """
    if not reference:
        raise ValueError("reference cannot be empty")
    if not metadata:
        raise ValueError("metadata name cannot be empty")

    lowered_suffix = suffix.lower()
    if not reference.lower().endswith(lowered_suffix) and metadata.lower().endswith(
        lowered_suffix
    ):
        metadata = metadata[: -len(suffix)]

    if "." in reference:
        return metadata.casefold() == reference.casefold()

    simple_name = metadata.rsplit(".", 1)[-1]
    return simple_name.casefold() == reference.casefold()
