from __future__ import annotations

from typing import Sequence

_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def fnv1a_32(text: str) -> int:
    h = _FNV_OFFSET
    for ch in text:
        h ^= ord(ch)
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def pick_today(candidates: Sequence[str], date_key: str) -> str:
    """Deterministically choose the answer for ``date_key``.

    Everyone with the same candidate list gets the same word on the same day.
    """
    if not candidates:
        raise ValueError("No candidate answers to pick from")
    return candidates[fnv1a_32(date_key) % len(candidates)]
