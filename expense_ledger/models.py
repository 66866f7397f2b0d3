"""
models.py - Data model definitions

This file defines the Expense dataclass used across the tracker and UIs.
Expenses are serialized to/from single '|'-delimited lines so they can be
persisted in the flat text file (see storage.py). to_dict() gives the
plain dict view the dashboard tables are built from.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional

from expense_ledger import validation
from expense_ledger.validation import FIELD_DELIMITER

DEFAULT_PAYMENT_METHOD = "Cash"
COPY_SUFFIX = " (Copy)"

# field order of one storage line
LINE_FIELDS = (
    "id",
    "description",
    "amount",
    "category",
    "date",
    "notes",
    "is_recurring",
    "payment_method",
    "location",
)
LEGACY_FIELD_COUNT = 5


@dataclass
class Expense:
    """
    Represents a single expense entry.

    Fields:
      - id: positive integer assigned by the tracker (or preserved from the file)
      - description: non-empty trimmed text
      - amount: positive amount, kept rounded to 2 decimals
      - category: non-empty trimmed text; the tracker derives the category set
      - date: ISO date string "YYYY-MM-DD"
      - notes: optional free text
      - is_recurring: informational flag used by the recurring reports
      - payment_method: free text, "Cash" when unspecified
      - location: optional free text

    Construct new records through Expense.create() which validates every field.
    The setters apply the same rules and return False (leaving the field
    untouched) instead of raising.
    """
    id: int = 0
    description: str = ""
    amount: float = 0.0
    category: str = ""
    date: str = ""
    notes: str = ""
    is_recurring: bool = False
    payment_method: str = DEFAULT_PAYMENT_METHOD
    location: str = field(default="")

    @classmethod
    def create(
        cls,
        id: int,
        description: str,
        amount: float,
        category: str,
        date: str = "",
        notes: str = "",
        is_recurring: bool = False,
        payment_method: str = DEFAULT_PAYMENT_METHOD,
        location: str = "",
    ) -> "Expense":
        """
        Build a validated Expense. A blank date means today.
        Raises ValueError naming the first invalid field.
        """
        if not isinstance(id, int) or id <= 0:
            raise ValueError(f"id must be a positive integer, got {id!r}")
        exp = cls(id=id)
        date = validation.normalize(date) or validation.today()
        checks = (
            ("description", exp.set_description(description)),
            ("amount", exp.set_amount(amount)),
            ("category", exp.set_category(category)),
            ("date", exp.set_date(date)),
            ("notes", exp.set_notes(notes)),
            ("payment_method", exp.set_payment_method(payment_method)),
            ("location", exp.set_location(location)),
        )
        for name, ok in checks:
            if not ok:
                raise ValueError(f"invalid {name} for expense {id}")
        exp.set_recurring(is_recurring)
        return exp

    # -----------------------
    # Validated setters
    # -----------------------
    @staticmethod
    def _clean_text(value: Optional[str], required: bool) -> Optional[str]:
        if not validation.is_storable(value):
            return None
        text = validation.normalize(value)
        if required and not text:
            return None
        return text

    def set_description(self, value: str) -> bool:
        text = self._clean_text(value, required=True)
        if text is None:
            return False
        self.description = text
        return True

    def set_category(self, value: str) -> bool:
        text = self._clean_text(value, required=True)
        if text is None:
            return False
        self.category = text
        return True

    def set_amount(self, value: float) -> bool:
        try:
            amount = round(float(value), 2)
        except (TypeError, ValueError, OverflowError):
            return False
        # NaN compares False against everything, so test the positive case
        if not amount > 0 or amount == float("inf"):
            return False
        self.amount = amount
        return True

    def set_date(self, value: str) -> bool:
        if not validation.is_valid_date(value):
            return False
        self.date = value
        return True

    def set_notes(self, value: str) -> bool:
        text = self._clean_text(value, required=False)
        if text is None:
            return False
        self.notes = text
        return True

    def set_payment_method(self, value: str) -> bool:
        text = self._clean_text(value, required=False)
        if text is None:
            return False
        self.payment_method = text or DEFAULT_PAYMENT_METHOD
        return True

    def set_location(self, value: str) -> bool:
        text = self._clean_text(value, required=False)
        if text is None:
            return False
        self.location = text
        return True

    def set_recurring(self, value: bool) -> bool:
        self.is_recurring = bool(value)
        return True

    # -----------------------
    # Line format
    # -----------------------
    def serialize(self) -> str:
        """One storage line, fields in LINE_FIELDS order, no trailing newline."""
        return FIELD_DELIMITER.join(
            [
                str(self.id),
                self.description,
                f"{self.amount:.2f}",
                self.category,
                self.date,
                self.notes,
                "1" if self.is_recurring else "0",
                self.payment_method,
                self.location,
            ]
        )

    @classmethod
    def deserialize(cls, line: str) -> Optional["Expense"]:
        """
        Parse one storage line. Accepts the full 9-field shape and the legacy
        5-field shape (id, description, amount, category, date).
        Returns None for a corrupt line; the loader counts and skips those.
        """
        tokens = line.rstrip("\r\n").split(FIELD_DELIMITER)
        if len(tokens) < LEGACY_FIELD_COUNT:
            return None
        exp_id = validation.parse_int(tokens[0])
        if exp_id is None or exp_id <= 0:
            return None
        try:
            amount = float(tokens[2])
        except ValueError:
            return None

        extra: Dict[str, object] = {}
        if len(tokens) >= len(LINE_FIELDS):
            extra = {
                "notes": tokens[5],
                "is_recurring": tokens[6].strip() == "1",
                "payment_method": tokens[7],
                "location": tokens[8],
            }
        if not validation.is_valid_date(tokens[4].strip()):
            return None
        try:
            return cls.create(
                id=exp_id,
                description=tokens[1],
                amount=amount,
                category=tokens[3],
                date=tokens[4].strip(),
                **extra,
            )
        except ValueError:
            return None

    def copy(self, new_id: int) -> "Expense":
        """
        Duplicate this expense under a fresh id: description marked as a copy,
        dated today, everything else carried over.
        """
        return replace(
            self,
            id=new_id,
            description=self.description + COPY_SUFFIX,
            date=validation.today(),
        )

    def to_dict(self) -> Dict:
        """
        Convert to a plain dict, used for DataFrames and the dashboard tables.
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}
