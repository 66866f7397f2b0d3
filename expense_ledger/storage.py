"""
storage.py - flat-file persistence for expenses

One expense per line in the '|'-delimited format produced by
Expense.serialize(). Loading is tolerant: blank lines are ignored and corrupt
lines are skipped and counted. Saving writes the whole collection atomically
(temp file + rename) so a crash mid-write never truncates the data file.
"""

import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from expense_ledger.logs import get_logger
from expense_ledger.models import Expense

logger = get_logger(__name__)

DEFAULT_FILENAME = "expenses.txt"


def default_data_file() -> str:
    """Backing file path: EXPENSE_LEDGER_FILE or expenses.txt in the cwd."""
    configured = (os.getenv("EXPENSE_LEDGER_FILE") or "").strip()
    return configured or os.path.join(os.getcwd(), DEFAULT_FILENAME)


@dataclass
class LoadResult:
    expenses: List[Expense] = field(default_factory=list)
    loaded: int = 0
    skipped: int = 0
    found: bool = False

    def message(self) -> str:
        if not self.found:
            return "Starting with empty expense list (no existing file found)."
        msg = f"Loaded {self.loaded} expenses from file"
        if self.skipped:
            msg += f" ({self.skipped} corrupted entries skipped)"
        return msg + "."


class LineFileStorage:
    """Reads and writes the expense line file at `path`."""

    def __init__(self, path: Optional[str] = None):
        self.path = os.path.abspath(path or default_data_file())

    def load(self) -> LoadResult:
        """
        Read every line of the file. A missing or unreadable file yields an
        empty result; it never raises.
        """
        result = LoadResult()
        if not os.path.exists(self.path):
            logger.info("No data file at %s, starting empty", self.path)
            return result
        try:
            with open(self.path, "rb") as f:
                raw_lines = f.read().splitlines()
        except OSError:
            logger.warning("Could not read %s, starting empty", self.path, exc_info=True)
            return result

        result.found = True
        for raw in raw_lines:
            # decoded per line so one bad byte only costs that record
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError:
                result.skipped += 1
                logger.debug("Skipping undecodable line: %r", raw)
                continue
            if not line.strip():
                continue
            exp = Expense.deserialize(line)
            if exp is None:
                result.skipped += 1
                logger.debug("Skipping corrupt line: %r", line)
                continue
            result.expenses.append(exp)
            result.loaded += 1
        logger.info("Loaded %d expenses from %s (skipped=%d)", result.loaded, self.path, result.skipped)
        return result

    @staticmethod
    def _render(expenses: Iterable[Expense]) -> str:
        return "".join(e.serialize() + "\n" for e in expenses)

    def _atomic_write(self, target: str, content: str) -> None:
        dirn = os.path.dirname(target)
        os.makedirs(dirn, exist_ok=True)
        # atomic write: write to temp file then move
        fd, tmp_path = tempfile.mkstemp(prefix="tmp_expenses_", dir=dirn, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, target)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def save(self, expenses: List[Expense]) -> bool:
        """
        Overwrite the data file with `expenses`. Returns False (after logging a
        warning) when the write fails; in-memory state stays authoritative.
        """
        logger.info("Saving data to %s (expenses=%d)", self.path, len(expenses))
        try:
            self._atomic_write(self.path, self._render(expenses))
        except OSError:
            logger.warning("Could not save to file %s", self.path, exc_info=True)
            return False
        return True

    def backup(self, expenses: List[Expense]) -> Optional[str]:
        """
        Write a timestamped copy (<file>.backup.<unix-ts>) of the current
        collection next to the data file. Returns the backup path or None.
        """
        target = f"{self.path}.backup.{int(time.time())}"
        try:
            self._atomic_write(target, self._render(expenses))
        except OSError:
            logger.warning("Could not create backup file %s", target, exc_info=True)
            return None
        logger.info("Data backed up to %s", target)
        return target
