import csv

from expense_ledger import export
from expense_ledger.models import Expense


def _expenses():
    return [
        Expense.create(id=1, description='Coffee, "large"', amount=4.5, category="Food",
                       date="2024-03-01", notes="with milk"),
        Expense.create(id=2, description="Gym", amount=30, category="Health", date="2024-03-02",
                       is_recurring=True, payment_method="Card", location="Downtown"),
    ]


def test_csv_export(tmp_path):
    path = export.write_csv(_expenses(), str(tmp_path / "report"))
    assert path.endswith("report.csv")
    with open(path, encoding="utf-8", newline="") as f:
        header = f.readline().strip()
        f.seek(0)
        rows = list(csv.reader(f))
    assert header == "ID,Description,Amount,Category,Date,Notes,Recurring,PaymentMethod,Location"
    assert rows[1] == ["1", 'Coffee, "large"', "4.50", "Food", "2024-03-01", "with milk", "No", "Cash", ""]
    assert rows[2] == ["2", "Gym", "30.00", "Health", "2024-03-02", "", "Yes", "Card", "Downtown"]


def test_csv_text_fields_are_quoted(tmp_path):
    path = export.write_csv(_expenses(), str(tmp_path / "report.csv"))
    with open(path, encoding="utf-8") as f:
        second_row = f.read().splitlines()[2]
    assert '"Gym"' in second_row
    assert '"Downtown"' in second_row


def test_csv_unwritable_path(tmp_path):
    assert export.write_csv(_expenses(), str(tmp_path / "missing" / "report")) is None


def test_totals_frame():
    totals = export.totals_frame(_expenses() + [_expenses()[1].copy(3)])
    assert dict(zip(totals["category"], totals["amount"])) == {"Food": 4.5, "Health": 60.0}


def test_xlsx_bytes():
    data = export.to_xlsx_bytes(_expenses())
    assert data[:2] == b"PK"
