import os

from expense_ledger.models import Expense
from expense_ledger.storage import LineFileStorage


def test_missing_file_loads_empty(data_file):
    result = LineFileStorage(data_file).load()
    assert result.expenses == []
    assert (result.loaded, result.skipped, result.found) == (0, 0, False)
    assert "Starting with empty" in result.message()


def test_legacy_and_corrupt_lines(data_file):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write("1|Lunch|12.00|Food|2023-05-06\n")
        f.write("\n")
        f.write("2|Dinner|abc|Food|2023-05-06\n")
    result = LineFileStorage(data_file).load()
    assert result.loaded == 1
    assert result.skipped == 1
    assert result.expenses[0].description == "Lunch"
    assert result.message() == "Loaded 1 expenses from file (1 corrupted entries skipped)."


def test_undecodable_line_is_skipped_not_fatal(data_file):
    with open(data_file, "wb") as f:
        f.write(b"1|Lunch|12.00|Food|2023-05-06\n")
        f.write(b"2|Caf\xe9|3.00|Food|2023-05-06\n")
    result = LineFileStorage(data_file).load()
    assert result.found is True
    assert (result.loaded, result.skipped) == (1, 1)
    assert result.expenses[0].description == "Lunch"


def test_save_then_load(data_file):
    storage = LineFileStorage(data_file)
    expenses = [
        Expense.create(id=1, description="Coffee", amount=4.5, category="Food", date="2024-03-01"),
        Expense.create(id=5, description="Rent", amount=900, category="Housing", date="2024-03-01",
                       is_recurring=True, payment_method="Transfer"),
    ]
    assert storage.save(expenses) is True
    with open(data_file, encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert lines == [
        "1|Coffee|4.50|Food|2024-03-01||0|Cash|",
        "5|Rent|900.00|Housing|2024-03-01||1|Transfer|",
    ]
    assert storage.load().expenses == expenses
    # no temp files left behind
    assert os.listdir(os.path.dirname(data_file)) == ["expenses.txt"]


def test_save_failure_returns_false(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    storage = LineFileStorage(str(blocker / "expenses.txt"))
    assert storage.save([]) is False


def test_backup_keeps_primary_untouched(data_file):
    storage = LineFileStorage(data_file)
    exp = Expense.create(id=1, description="Coffee", amount=4.5, category="Food", date="2024-03-01")
    storage.save([exp])
    path = storage.backup([exp, exp.copy(2)])
    assert path is not None
    assert os.path.basename(path).startswith("expenses.txt.backup.")
    with open(path, encoding="utf-8") as f:
        assert len(f.read().splitlines()) == 2
    assert len(storage.load().expenses) == 1
