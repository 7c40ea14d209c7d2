from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from wordscend.core.ledger import Ledger, ledger_from_dict
from wordscend.core.snapshot import CorruptPersistedError

logger = logging.getLogger(__name__)


class LedgerStore:
    """Persists the player ledger as one JSON document across app restarts.

    File: ~/.wordscend/ledger.json unless another path is given. Read failures
    fall back to a fresh ledger and write failures are logged; neither is fatal.
    """

    def __init__(
        self,
        level_lengths: Sequence[int],
        milestones: Optional[Sequence[int]] = None,
        file_path: Optional[Path] = None,
    ) -> None:
        self._file_path = file_path or Path.home() / ".wordscend" / "ledger.json"
        self._level_lengths = list(level_lengths)
        self._milestones = list(milestones) if milestones is not None else None

    @property
    def file_path(self) -> Path:
        return self._file_path

    def fresh(self, today: str) -> Ledger:
        return Ledger.default(today, self._milestones)

    def load(self, today: str) -> Ledger:
        """Read the stored ledger and roll it over to ``today``."""
        if not self._file_path.exists():
            return self.fresh(today)
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as e:
            logger.warning("Could not load ledger from %s: %s", self._file_path, e)
            return self.fresh(today)
        try:
            return ledger_from_dict(payload, today, self._level_lengths, self._milestones)
        except CorruptPersistedError as e:
            logger.warning("Ignoring corrupt ledger in %s: %s", self._file_path, e)
            return self.fresh(today)

    def save(self, ledger: Ledger) -> bool:
        """Write ``ledger`` to disk. Returns False if the write failed."""
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(ledger.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save ledger to %s: %s", self._file_path, e)
            return False
        return True

    def reset(self, today: str) -> Ledger:
        """Replace the stored ledger with a fresh one. Only called on an explicit reset."""
        ledger = self.fresh(today)
        self.save(ledger)
        return ledger
