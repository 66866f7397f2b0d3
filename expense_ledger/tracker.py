"""
tracker.py - core application logic and persistence

Responsibilities:
 - keep an in-memory list of Expense objects (insertion/load order)
 - assign ids from a per-tracker counter that never goes backwards
 - keep derived category statistics in sync after every mutation
 - undo/redo through whole-collection snapshots (bounded history)
 - persist the full collection to the line file after every change
 - provide query/aggregation helpers consumed by the CLI and dashboard:
     sorted views, searches, totals/averages, grouped totals,
     recurring totals and projection, summary()
"""

from collections import Counter, deque
from dataclasses import dataclass, field, replace
from typing import Deque, Dict, List, Optional, Set, Tuple

from expense_ledger import validation
from expense_ledger.logs import get_logger
from expense_ledger.models import DEFAULT_PAYMENT_METHOD, Expense
from expense_ledger.storage import LineFileStorage, LoadResult

logger = get_logger(__name__)

UNDO_LIMIT = 20
DEFAULT_CATEGORY = "General"
CLEAR_CONFIRMATION = "DELETE ALL"
PAYMENT_METHOD_OPTIONS = ["Cash", "Card", "Online", "Check", "Transfer"]

SORT_KEYS = ("date", "amount", "category", "id")

# update_expense keyword -> Expense setter
_SETTERS = {
    "description": "set_description",
    "amount": "set_amount",
    "category": "set_category",
    "date": "set_date",
    "notes": "set_notes",
    "payment_method": "set_payment_method",
    "location": "set_location",
    "is_recurring": "set_recurring",
}

Snapshot = Tuple[Expense, ...]


@dataclass
class UpdateResult:
    """Outcome of update_expense: the live record plus per-field verdicts."""
    expense: Expense
    applied: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


@dataclass
class Summary:
    count: int = 0
    total: float = 0.0
    average: float = 0.0
    highest: Optional[Expense] = None
    lowest: Optional[Expense] = None
    category_totals: Dict[str, float] = field(default_factory=dict)
    category_counts: Dict[str, int] = field(default_factory=dict)
    payment_totals: Dict[str, float] = field(default_factory=dict)
    monthly_totals: Dict[str, float] = field(default_factory=dict)
    recurring_count: int = 0
    recurring_total: float = 0.0
    annual_projection: float = 0.0


def _sum(expenses: List[Expense]) -> float:
    return round(sum(e.amount for e in expenses), 2)


def _grouped_totals(expenses: List[Expense], key) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for e in expenses:
        k = key(e)
        totals[k] = round(totals.get(k, 0.0) + e.amount, 2)
    return dict(sorted(totals.items()))


class ExpenseTracker:
    """
    One tracker per process run. The CLI (or dashboard) creates it with the
    data file path and calls its methods with already-validated values.

    Mutating methods snapshot the collection before changing it, clear the
    pending redo history, recompute statistics and save. "Not found" and
    "nothing to undo/redo" are reported through the return value.
    """

    def __init__(self, data_file: Optional[str] = None, storage: Optional[LineFileStorage] = None):
        # in-memory list of Expense objects
        self.expenses: List[Expense] = []
        # derived from self.expenses by _update_category_stats()
        self.categories: Set[str] = set()
        self.category_counts: Counter = Counter()
        # next id for new expenses
        self._next_id = 1
        self._undo: Deque[Snapshot] = deque(maxlen=UNDO_LIMIT)
        self._redo: Deque[Snapshot] = deque(maxlen=UNDO_LIMIT)
        self.storage = storage or LineFileStorage(data_file)
        self.load_result = LoadResult()
        self.load()

    @property
    def data_file(self) -> str:
        return self.storage.path

    # -----------------------
    # Persistence
    # -----------------------
    def load(self) -> LoadResult:
        """
        Replace the in-memory collection with the file contents.
        Lines reusing an id already loaded count as skipped.
        _next_id is advanced past the highest id seen.
        """
        result = self.storage.load()
        seen: Set[int] = set()
        kept: List[Expense] = []
        for exp in result.expenses:
            if exp.id in seen:
                logger.warning("Duplicate expense id=%s in %s, skipping", exp.id, self.data_file)
                result.loaded -= 1
                result.skipped += 1
                continue
            seen.add(exp.id)
            kept.append(exp)
        result.expenses = kept
        self.expenses = list(kept)
        if seen:
            self._next_id = max(self._next_id, max(seen) + 1)
        self._update_category_stats()
        self.load_result = result
        return result

    def save(self) -> bool:
        return self.storage.save(self.expenses)

    def backup(self) -> Optional[str]:
        return self.storage.backup(self.expenses)

    def export_csv(self, path: str) -> Optional[str]:
        # imported lazily: pandas is only needed when exporting
        from expense_ledger import export

        return export.write_csv(self.expenses, path)

    # -----------------------
    # Internal state helpers
    # -----------------------
    def _snapshot(self) -> Snapshot:
        return tuple(replace(e) for e in self.expenses)

    @staticmethod
    def _restore(snapshot: Snapshot) -> List[Expense]:
        return [replace(e) for e in snapshot]

    def _save_state(self):
        """Push the current collection on the undo history; a new action voids redo."""
        self._undo.append(self._snapshot())
        self._redo.clear()

    def _update_category_stats(self):
        self.categories = {e.category for e in self.expenses}
        self.category_counts = Counter(e.category for e in self.expenses)

    def _commit(self):
        self._update_category_stats()
        self.save()

    def _take_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    # -----------------------
    # Mutations
    # -----------------------
    def add_expense(
        self,
        description: str,
        amount: float,
        category: str,
        date: str = "",
        notes: str = "",
        is_recurring: bool = False,
        payment_method: str = DEFAULT_PAYMENT_METHOD,
        location: str = "",
    ) -> Expense:
        """
        Create an Expense, append it and persist.
        Raises ValueError when a field is invalid (nothing is changed then).
        """
        exp = Expense.create(
            id=self._next_id,
            description=description,
            amount=amount,
            category=category,
            date=date,
            notes=notes,
            is_recurring=is_recurring,
            payment_method=payment_method,
            location=location,
        )
        self._take_id()
        self._save_state()
        self.expenses.append(exp)
        self._commit()
        logger.info("Added expense id=%s (%s, %.2f)", exp.id, exp.category, exp.amount)
        return exp

    def default_category(self) -> str:
        """Most used category so far (first seen wins ties), else "General"."""
        top = self.category_counts.most_common(1)
        return top[0][0] if top else DEFAULT_CATEGORY

    def quick_add(self, description: str, amount: float, category: Optional[str] = None) -> Expense:
        category = validation.normalize(category) or self.default_category()
        return self.add_expense(description, amount, category)

    def find_by_id(self, expense_id: int) -> Optional[Expense]:
        for e in self.expenses:
            if e.id == expense_id:
                return e
        return None

    def update_expense(self, expense_id: int, **changes) -> Optional[UpdateResult]:
        """
        Apply only the given fields (description, amount, category, date, notes,
        payment_method, location, is_recurring). Each value goes through the
        matching Expense setter; rejected values leave that field unchanged.
        Returns None when the id is unknown.
        """
        unknown = set(changes) - set(_SETTERS)
        if unknown:
            raise TypeError(f"unknown expense fields: {', '.join(sorted(unknown))}")

        self._save_state()
        exp = self.find_by_id(expense_id)
        if exp is None:
            logger.info("Expense id=%s not found", expense_id)
            return None

        result = UpdateResult(expense=exp)
        for name, value in changes.items():
            ok = getattr(exp, _SETTERS[name])(value)
            (result.applied if ok else result.rejected).append(name)
        self._commit()
        logger.info("Updated expense id=%s applied=%s rejected=%s", expense_id, result.applied, result.rejected)
        return result

    def delete_expense(self, expense_id: int, confirmed: bool = False) -> bool:
        """
        Remove expense by id once the caller has confirmed.
        Returns True if deleted, False if not found or not confirmed.
        IDs are not renumbered.
        """
        self._save_state()
        for i, e in enumerate(self.expenses):
            if e.id != expense_id:
                continue
            if not confirmed:
                logger.info("Delete of expense id=%s cancelled", expense_id)
                return False
            removed = self.expenses.pop(i)
            self._commit()
            logger.info("Deleted expense id=%s (category=%s, amount=%.2f). Remaining expenses=%d.",
                        expense_id, removed.category, removed.amount, len(self.expenses))
            return True
        logger.info("Expense id=%s not found", expense_id)
        return False

    def duplicate_expense(self, expense_id: int) -> Optional[Expense]:
        self._save_state()
        source = self.find_by_id(expense_id)
        if source is None:
            logger.info("Expense id=%s not found", expense_id)
            return None
        dup = source.copy(self._take_id())
        self.expenses.append(dup)
        self._commit()
        logger.info("Duplicated expense id=%s as id=%s", expense_id, dup.id)
        return dup

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> bool:
        if not self._undo:
            logger.info("No operations to undo")
            return False
        self._redo.append(self._snapshot())
        self.expenses = self._restore(self._undo.pop())
        self._commit()
        logger.info("Undo applied (expenses=%d)", len(self.expenses))
        return True

    def redo(self) -> bool:
        if not self._redo:
            logger.info("No operations to redo")
            return False
        self._undo.append(self._snapshot())
        self.expenses = self._restore(self._redo.pop())
        self._commit()
        logger.info("Redo applied (expenses=%d)", len(self.expenses))
        return True

    def clear(self):
        """
        Remove every expense. The caller must have obtained the typed
        confirmation (CLEAR_CONFIRMATION) first. Undoable; ids are not reset.
        """
        self._save_state()
        self.expenses = []
        self._commit()
        logger.info("All expenses cleared")

    # -----------------------
    # Views and searches
    # -----------------------
    def list_expenses(self) -> List[Expense]:
        return list(self.expenses)

    def sorted_expenses(self, key: str = "id") -> List[Expense]:
        """
        Sorted copy of the collection: date and amount newest/highest first,
        category alphabetical, id ascending. Ties keep collection order.
        """
        if key == "date":
            return sorted(self.expenses, key=lambda e: e.date, reverse=True)
        if key == "amount":
            return sorted(self.expenses, key=lambda e: e.amount, reverse=True)
        if key == "category":
            return sorted(self.expenses, key=lambda e: e.category)
        if key == "id":
            return sorted(self.expenses, key=lambda e: e.id)
        raise ValueError(f"unknown sort key {key!r}, expected one of {SORT_KEYS}")

    def search_description(self, term: str) -> List[Expense]:
        term = validation.normalize(term).lower()
        return [e for e in self.expenses if term in e.description.lower()]

    def search_category(self, category: str) -> List[Expense]:
        category = validation.normalize(category).lower()
        return [e for e in self.expenses if e.category.lower() == category]

    def search_payment_method(self, method: str) -> List[Expense]:
        method = validation.normalize(method).lower()
        return [e for e in self.expenses if e.payment_method.lower() == method]

    def search_date_range(self, start: str, end: str) -> List[Expense]:
        """Inclusive range; bounds are swapped when start > end."""
        if start > end:
            start, end = end, start
        return [e for e in self.expenses if start <= e.date <= end]

    def search_amount_range(self, min_amount: float, max_amount: float) -> List[Expense]:
        """Inclusive range; bounds are swapped when min > max."""
        if min_amount > max_amount:
            min_amount, max_amount = max_amount, min_amount
        return [e for e in self.expenses if min_amount <= e.amount <= max_amount]

    def advanced_search(
        self,
        description: Optional[str] = None,
        category: Optional[str] = None,
        payment_method: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Expense]:
        """
        AND-combination of every criterion given; None or blank criteria are
        ignored. Ranges are inclusive and reversed bounds are swapped.
        """
        description = validation.normalize(description).lower()
        category = validation.normalize(category).lower()
        payment_method = validation.normalize(payment_method).lower()
        start_date = validation.normalize(start_date)
        end_date = validation.normalize(end_date)
        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            min_amount, max_amount = max_amount, min_amount
        if start_date and end_date and start_date > end_date:
            start_date, end_date = end_date, start_date

        out: List[Expense] = []
        for e in self.expenses:
            if description and description not in e.description.lower():
                continue
            if category and e.category.lower() != category:
                continue
            if payment_method and e.payment_method.lower() != payment_method:
                continue
            if min_amount is not None and e.amount < min_amount:
                continue
            if max_amount is not None and e.amount > max_amount:
                continue
            if start_date and e.date < start_date:
                continue
            if end_date and e.date > end_date:
                continue
            out.append(e)
        return out

    def payment_methods(self) -> List[str]:
        return sorted({e.payment_method for e in self.expenses})

    def top_categories(self, n: int = 5) -> List[str]:
        """Category suggestions, most used first."""
        return [c for c, _ in self.category_counts.most_common(n)]

    # -----------------------
    # Aggregates
    # -----------------------
    def total_amount(self, expenses: Optional[List[Expense]] = None) -> float:
        return _sum(self.expenses if expenses is None else expenses)

    def average_amount(self) -> float:
        if not self.expenses:
            return 0.0
        return self.total_amount() / len(self.expenses)

    def highest_expense(self) -> Optional[Expense]:
        # max/min return the first of equal items, so the earliest record wins ties
        return max(self.expenses, key=lambda e: e.amount, default=None)

    def lowest_expense(self) -> Optional[Expense]:
        return min(self.expenses, key=lambda e: e.amount, default=None)

    def totals_by_category(self) -> Dict[str, float]:
        return _grouped_totals(self.expenses, lambda e: e.category)

    def counts_by_category(self) -> Dict[str, int]:
        return dict(sorted(self.category_counts.items()))

    def totals_by_payment_method(self) -> Dict[str, float]:
        return _grouped_totals(self.expenses, lambda e: e.payment_method)

    def totals_by_month(self) -> Dict[str, float]:
        """{ "YYYY-MM": total, ... } in month order."""
        return _grouped_totals(self.expenses, lambda e: e.date[:7])

    def expenses_by_category(self) -> Dict[str, List[Expense]]:
        groups: Dict[str, List[Expense]] = {}
        for e in self.expenses:
            groups.setdefault(e.category, []).append(e)
        return dict(sorted(groups.items()))

    def recurring_expenses(self) -> List[Expense]:
        return [e for e in self.expenses if e.is_recurring]

    def recurring_total(self) -> float:
        """Monthly amount of the recurring expenses."""
        return _sum(self.recurring_expenses())

    def annual_projection(self) -> float:
        return round(self.recurring_total() * 12, 2)

    def summary(self) -> Summary:
        recurring = self.recurring_expenses()
        recurring_total = _sum(recurring)
        return Summary(
            count=len(self.expenses),
            total=self.total_amount(),
            average=self.average_amount(),
            highest=self.highest_expense(),
            lowest=self.lowest_expense(),
            category_totals=self.totals_by_category(),
            category_counts=self.counts_by_category(),
            payment_totals=self.totals_by_payment_method(),
            monthly_totals=self.totals_by_month(),
            recurring_count=len(recurring),
            recurring_total=recurring_total,
            annual_projection=round(recurring_total * 12, 2),
        )
