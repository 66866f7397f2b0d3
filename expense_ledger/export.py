"""
export.py - CSV and XLSX exports built from the tracker's collection

CSV layout:
  ID,Description,Amount,Category,Date,Notes,Recurring,PaymentMethod,Location
Text values are double-quoted, Amount has two decimals, Recurring is Yes/No.

The XLSX workbook (dashboard download) has an "expenses" sheet plus a
"totals_by_category" sheet.
"""

import csv
import os
from io import BytesIO
from typing import List, Optional

import pandas as pd

from expense_ledger.logs import get_logger
from expense_ledger.models import Expense

logger = get_logger(__name__)

CSV_COLUMNS = [
    "ID",
    "Description",
    "Amount",
    "Category",
    "Date",
    "Notes",
    "Recurring",
    "PaymentMethod",
    "Location",
]


def expenses_frame(expenses: List[Expense]) -> pd.DataFrame:
    """One row per expense, columns in CSV_COLUMNS order."""
    rows = []
    for e in expenses:
        rows.append({
            "ID": int(e.id),
            "Description": e.description,
            "Amount": round(float(e.amount), 2),
            "Category": e.category,
            "Date": e.date,
            "Notes": e.notes,
            "Recurring": "Yes" if e.is_recurring else "No",
            "PaymentMethod": e.payment_method,
            "Location": e.location,
        })
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def csv_filename(name: str) -> str:
    """Append the .csv extension unless the user already typed it."""
    name = name.strip()
    return name if name.lower().endswith(".csv") else name + ".csv"


def write_csv(expenses: List[Expense], path: str) -> Optional[str]:
    """
    Write the CSV export to `path` (".csv" appended when missing).
    Returns the written path, or None when the file could not be created.
    """
    target = os.path.abspath(csv_filename(path))
    df = expenses_frame(expenses)
    try:
        with open(target, "w", encoding="utf-8", newline="") as f:
            # header is written bare; QUOTE_NONNUMERIC would quote it
            f.write(",".join(CSV_COLUMNS) + "\n")
            df.to_csv(
                f,
                index=False,
                header=False,
                quoting=csv.QUOTE_NONNUMERIC,
                float_format="%.2f",
                lineterminator="\n",
            )
    except OSError:
        logger.warning("Could not create CSV file %s", target, exc_info=True)
        return None
    logger.info("Exported %d expenses to %s", len(expenses), target)
    return target


def totals_frame(expenses: List[Expense]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"category": e.category, "amount": e.amount} for e in expenses],
        columns=["category", "amount"],
    )
    return df.groupby("category")["amount"].sum().round(2).reset_index()


def to_xlsx_bytes(expenses: List[Expense]) -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        expenses_frame(expenses).to_excel(writer, index=False, sheet_name="expenses")
        # write totals to a separate sheet
        totals_frame(expenses).to_excel(writer, index=False, sheet_name="totals_by_category")
    # context manager already saved into buffer
    buffer.seek(0)
    return buffer.getvalue()
