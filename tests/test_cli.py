import io
import logging
import os

import pytest
from rich.console import Console

from expense_ledger import main as entrypoint
from expense_ledger.cli import ExpenseShell


def make_shell(tracker, *answers):
    replies = iter(answers)
    console = Console(file=io.StringIO(), width=120)
    return ExpenseShell(tracker, console=console, input_func=lambda prompt: next(replies))


def output(shell):
    return shell.console.file.getvalue()


def test_add_expense_flow(tracker):
    shell = make_shell(tracker, "Coffee", "4.50", "Food", "2024-03-01", "", "Card", "", "n")
    shell.dispatch(1)
    assert "Expense added successfully! ID: 1" in output(shell)
    exp = tracker.find_by_id(1)
    assert (exp.description, exp.amount, exp.category, exp.date) == ("Coffee", 4.5, "Food", "2024-03-01")
    assert exp.payment_method == "Card"
    assert exp.is_recurring is False


def test_invalid_input_is_asked_again(tracker):
    shell = make_shell(
        tracker,
        "", "Coffee|x", "Coffee",
        "abc", "0", "4.555", "4.50",
        "Food",
        "2023-02-29", "",
        "", "Cash", "", "maybe", "y",
    )
    shell.dispatch(1)
    out = output(shell)
    assert "Input cannot be empty" in out
    assert "'|' character is not allowed" in out
    assert out.count("valid positive amount") == 3
    assert "real date" in out
    assert "Please enter 'y' for yes or 'n' for no." in out
    assert "(Marked as recurring)" in out
    assert tracker.find_by_id(1).is_recurring is True


def test_quick_add_uses_most_used_category(tracker):
    tracker.add_expense("Coffee", 4.50, "Food")
    tracker.add_expense("Lunch", 12, "Food")
    tracker.add_expense("Bus", 2, "Transport")
    shell = make_shell(tracker, "Snack", "3", "")
    shell.dispatch(2)
    assert "Quick expense added! ID: 4" in output(shell)
    assert tracker.find_by_id(4).category == "Food"


def test_empty_views(tracker):
    shell = make_shell(tracker)
    shell.dispatch(3)
    shell.dispatch(6)
    out = output(shell)
    assert "No expenses found." in out
    assert "No recurring expenses found." in out


def test_delete_can_be_cancelled(tracker):
    tracker.add_expense("Coffee", 4.50, "Food")
    shell = make_shell(tracker, "7", "1", "n")
    shell.dispatch(9)
    shell.dispatch(9)
    out = output(shell)
    assert "Expense with ID 7 not found." in out
    assert "Delete operation cancelled." in out
    assert len(tracker.expenses) == 1


def test_cancel_and_not_found_are_logged(tracker, caplog):
    caplog.set_level(logging.INFO, logger="expense_ledger")
    tracker.add_expense("Coffee", 4.50, "Food")
    shell = make_shell(tracker, "7", "1", "n", "nope")
    shell.dispatch(9)
    shell.dispatch(9)
    shell.dispatch(16)
    assert "Expense id=7 not found" in caplog.text
    assert "Delete of expense id=1 cancelled" in caplog.text
    assert "Clear cancelled" in caplog.text


def test_delete_confirmed(tracker):
    tracker.add_expense("Coffee", 4.50, "Food")
    shell = make_shell(tracker, "1", "yes")
    shell.dispatch(9)
    assert "Expense deleted successfully!" in output(shell)
    assert tracker.expenses == []


def test_update_single_field(tracker):
    tracker.add_expense("Coffee", 4.50, "Food")
    shell = make_shell(tracker, "1", "2", "9.99")
    shell.dispatch(8)
    assert "Expense updated successfully!" in output(shell)
    assert tracker.find_by_id(1).amount == 9.99


def test_undo_and_redo_messages(tracker):
    shell = make_shell(tracker)
    shell.dispatch(11)
    shell.dispatch(12)
    out = output(shell)
    assert "No operations to undo." in out
    assert "No operations to redo." in out

    tracker.add_expense("Coffee", 4.50, "Food")
    shell.dispatch(11)
    assert "Last operation undone successfully!" in output(shell)
    assert tracker.expenses == []


def test_amount_range_search_corrects_order(tracker):
    for amount in (5, 20, 60):
        tracker.add_expense("Item", amount, "Misc")
    shell = make_shell(tracker, "4", "50", "10")
    shell.dispatch(7)
    out = output(shell)
    assert "Amount range corrected" in out
    assert "Found 1 expenses" in out


def test_summary_lists_monthly_breakdown_only_for_several_months(tracker):
    tracker.add_expense("Coffee", 4.50, "Food", "2024-03-01")
    shell = make_shell(tracker)
    shell.dispatch(13)
    assert "Monthly Breakdown" not in output(shell)
    tracker.add_expense("Rent", 800, "Housing", "2024-04-01", is_recurring=True)
    shell.dispatch(13)
    out = output(shell)
    assert "Monthly Breakdown" in out
    assert "Annual projection: $9600.00" in out


def test_export_csv(tracker, tmp_path):
    tracker.add_expense("Coffee", 4.50, "Food")
    target = str(tmp_path / "report")
    shell = make_shell(tracker, target)
    shell.dispatch(14)
    assert os.path.exists(target + ".csv")


def test_clear_requires_exact_phrase(tracker):
    tracker.add_expense("Coffee", 4.50, "Food")
    shell = make_shell(tracker, "delete all", "DELETE ALL")
    shell.dispatch(16)
    assert "Operation cancelled." in output(shell)
    assert len(tracker.expenses) == 1
    shell.dispatch(16)
    assert "All expenses have been deleted." in output(shell)
    assert tracker.expenses == []


def test_run_loop_exits_on_zero(tracker):
    shell = make_shell(tracker, "99", "x", "0")
    shell.run()
    out = output(shell)
    assert "Starting with empty expense list" in out
    assert "Please enter a number between 0 and 16." in out
    assert "Please enter a valid number." in out
    assert "Thank you for using Expense Tracker!" in out
    assert shell.running is False


def test_main_ends_quietly_on_eof(monkeypatch, tmp_path):
    def no_more_input(*args, **kwargs):
        raise EOFError

    monkeypatch.setattr("builtins.input", no_more_input)
    assert entrypoint.main(["--file", str(tmp_path / "expenses.txt")]) == 0


def test_main_rejects_unknown_arguments():
    with pytest.raises(SystemExit):
        entrypoint.main(["--colour"])
