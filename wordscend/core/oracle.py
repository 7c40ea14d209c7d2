"""Dictionary membership checks used to accept or refuse a guess.

Two adapters are provided: an exact word set, and a Bloom filter that
trades a bounded false-positive rate for a compact file. Neither ever
rejects a word it was built from.
"""

from __future__ import annotations

import json
import logging
import math
import re
from pathlib import Path
from typing import Iterable, List, Protocol, Set

logger = logging.getLogger(__name__)

MIN_WORD_LEN = 4
MAX_WORD_LEN = 7

BANNED_ABBREVIATIONS = frozenset(
    {
        "fifa", "nato", "nasa", "asap", "diy", "eta", "faq", "hdmi", "jpeg", "pdf", "usb",
        "html", "css", "json", "kpi", "roi", "oauth", "yaml", "xml", "api", "ipsec",
    }
)

_WORD_RE = re.compile(r"^[a-z]{%d,%d}$" % (MIN_WORD_LEN, MAX_WORD_LEN))

_MASK32 = 0xFFFFFFFF
_SEED_A = 0x9747B28C
_SEED_B = 0x5BD1E995


class MembershipOracle(Protocol):
    def has(self, word: str) -> bool:
        ...


def looks_english(word: str) -> bool:
    """Cheap shape filter: 4-7 ASCII letters and not a known abbreviation."""
    if not isinstance(word, str) or not word:
        return False
    lower = word.lower()
    return bool(_WORD_RE.match(lower)) and lower not in BANNED_ABBREVIATIONS


class WordSetOracle:
    """Exact membership against an in-memory word set."""

    def __init__(self, words: Iterable[str]) -> None:
        self._words: Set[str] = {w.strip().upper() for w in words if looks_english(w.strip())}

    def __len__(self) -> int:
        return len(self._words)

    def has(self, word: str) -> bool:
        if not looks_english(word):
            return False
        return word.upper() in self._words


def _rotl32(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _MASK32


def murmur3_32(data: bytes, seed: int = 0) -> int:
    """MurmurHash3 x86 32-bit, returned unsigned."""
    c1, c2 = 0xCC9E2D51, 0x1B873593
    h = seed & _MASK32
    length = len(data)
    rounded = length & ~3

    for i in range(0, rounded, 4):
        k = int.from_bytes(data[i:i + 4], "little")
        k = (k * c1) & _MASK32
        k = _rotl32(k, 15)
        k = (k * c2) & _MASK32
        h ^= k
        h = _rotl32(h, 13)
        h = (h * 5 + 0xE6546B64) & _MASK32

    tail = data[rounded:]
    if tail:
        k = 0
        if len(tail) >= 3:
            k ^= tail[2] << 16
        if len(tail) >= 2:
            k ^= tail[1] << 8
        k ^= tail[0]
        k = (k * c1) & _MASK32
        k = _rotl32(k, 15)
        k = (k * c2) & _MASK32
        h ^= k

    h ^= length
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK32
    h ^= h >> 16
    return h


def _bit_positions(m: int, k: int, word: str) -> List[int]:
    data = word.encode("utf-8")
    h1 = murmur3_32(data, _SEED_A)
    h2 = murmur3_32(data, _SEED_B)
    return [(h1 + i * h2) % m for i in range(k)]


class BloomOracle:
    """Bloom filter over lower-cased words.

    ``m`` is the number of bits, ``k`` the number of probes. Bit ``p`` lives
    in byte ``p >> 3`` under mask ``1 << (p & 7)``.
    """

    def __init__(self, bits: bytes | bytearray, m: int, k: int) -> None:
        if m <= 0 or k <= 0:
            raise ValueError(f"Bloom filter needs positive m and k, got m={m} k={k}")
        if len(bits) * 8 < m:
            raise ValueError(f"Bloom filter has {len(bits) * 8} bits, metadata says {m}")
        self._bits = bytearray(bits)
        self._m = m
        self._k = k

    @property
    def m(self) -> int:
        return self._m

    @property
    def k(self) -> int:
        return self._k

    @classmethod
    def from_words(cls, words: Iterable[str], false_positive_rate: float = 0.01) -> "BloomOracle":
        accepted = sorted({w.strip().lower() for w in words if looks_english(w.strip())})
        n = max(len(accepted), 1)
        m = max(8, int(math.ceil(-n * math.log(false_positive_rate) / (math.log(2) ** 2))))
        k = max(1, int(round(m / n * math.log(2))))
        oracle = cls(bytearray((m + 7) // 8), m, k)
        for word in accepted:
            oracle.add(word)
        logger.info("Built Bloom filter: %d words, m=%d, k=%d", len(accepted), m, k)
        return oracle

    @classmethod
    def load(cls, bin_path: Path, meta_path: Path) -> "BloomOracle":
        meta = json.loads(Path(meta_path).read_text(encoding="utf-8"))
        if not isinstance(meta, dict):
            raise ValueError(f"{meta_path}: expected JSON object with 'm' and 'k'")
        try:
            m = int(meta["m"])
            k = int(meta["k"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"{meta_path}: invalid Bloom metadata: {e}") from e
        return cls(Path(bin_path).read_bytes(), m, k)

    def save(self, bin_path: Path, meta_path: Path) -> None:
        Path(bin_path).write_bytes(bytes(self._bits))
        Path(meta_path).write_text(json.dumps({"m": self._m, "k": self._k}), encoding="utf-8")

    def add(self, word: str) -> None:
        for pos in _bit_positions(self._m, self._k, word.lower()):
            self._bits[pos >> 3] |= 1 << (pos & 7)

    def has(self, word: str) -> bool:
        if not looks_english(word):
            return False
        for pos in _bit_positions(self._m, self._k, word.lower()):
            if not self._bits[pos >> 3] & (1 << (pos & 7)):
                return False
        return True
