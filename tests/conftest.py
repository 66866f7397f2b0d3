import pytest

from expense_ledger.tracker import ExpenseTracker


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "expenses.txt")


@pytest.fixture
def tracker(data_file):
    return ExpenseTracker(data_file=data_file)
