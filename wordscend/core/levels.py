from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from wordscend.core.oracle import looks_english

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class GameConfig:
    rows: int
    level_lengths: Tuple[int, ...]
    score_table: Tuple[int, ...]
    milestones: Tuple[int, ...]
    freeze_threshold: int
    hint_interval: int
    hint_penalty: int
    advance_delay: float

    @property
    def level_count(self) -> int:
        return len(self.level_lengths)


def _positive_int(raw: dict, key: str, source: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{source}: '{key}' must be a positive integer")
    return value


def _int_list(raw: dict, key: str, source: str) -> Tuple[int, ...]:
    value = raw.get(key)
    if not isinstance(value, list) or not value:
        raise ValueError(f"{source}: '{key}' must be a non-empty list")
    if not all(isinstance(v, int) and not isinstance(v, bool) and v >= 0 for v in value):
        raise ValueError(f"{source}: '{key}' must contain non-negative integers")
    return tuple(value)


def load_config(path: Optional[Path] = None) -> GameConfig:
    config_path = path or DATA_DIR / "config.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{config_path.name}: expected a YAML mapping")

    source = config_path.name
    lengths = _int_list(raw, "level_lengths", source)
    if any(n <= 0 for n in lengths):
        raise ValueError(f"{source}: 'level_lengths' must be positive")
    if len(set(lengths)) != len(lengths):
        raise ValueError(f"{source}: 'level_lengths' must not repeat")

    delay = raw.get("advance_delay", 0.0)
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        raise ValueError(f"{source}: 'advance_delay' must be a non-negative number")
    penalty = raw.get("hint_penalty", 0)
    if isinstance(penalty, bool) or not isinstance(penalty, int) or penalty < 0:
        raise ValueError(f"{source}: 'hint_penalty' must be a non-negative integer")

    return GameConfig(
        rows=_positive_int(raw, "rows", source),
        level_lengths=lengths,
        score_table=_int_list(raw, "score_table", source),
        milestones=tuple(sorted(set(_int_list(raw, "milestones", source)))),
        freeze_threshold=_positive_int(raw, "freeze_threshold", source),
        hint_interval=_positive_int(raw, "hint_interval", source),
        hint_penalty=penalty,
        advance_delay=float(delay),
    )


def load_words(path: Optional[Path] = None) -> List[str]:
    """Read a one-word-per-line list, keeping upper-cased words that pass :func:`looks_english`."""
    words_path = path or DATA_DIR / "words.txt"
    if not words_path.exists():
        raise FileNotFoundError(f"Word list not found: {words_path}")
    words: List[str] = []
    seen = set()
    for line in words_path.read_text(encoding="utf-8").splitlines():
        word = line.strip()
        if not word or not looks_english(word):
            continue
        word = word.upper()
        if word not in seen:
            seen.add(word)
            words.append(word)
    return words


class LevelRepository:
    """Candidate answers for each level, grouped by word length."""

    def __init__(self, config: GameConfig, words: List[str]) -> None:
        self._config = config
        self._candidates = self._group(words)

    @property
    def config(self) -> GameConfig:
        return self._config

    def length_for(self, level_index: int) -> int:
        return self._config.level_lengths[level_index]

    def candidates(self, length: int) -> List[str]:
        return list(self._candidates[length])

    def _group(self, words: List[str]) -> Dict[int, List[str]]:
        grouped: Dict[int, List[str]] = {n: [] for n in self._config.level_lengths}
        for word in words:
            if len(word) in grouped:
                grouped[len(word)].append(word.upper())
        for length, bucket in grouped.items():
            if not bucket:
                raise ValueError(f"No candidate answers of length {length} in word list")
        return grouped
