"""
cli.py - interactive text menu over ExpenseTracker

The shell owns everything interactive: prompting, retrying until the raw
input is valid, asking for confirmations, and rendering results with rich.
All persistence and business rules stay in expense_ledger.tracker; the shell
only calls tracker methods with typed, validated values.

Input comes from `input_func(prompt) -> str` (console.input by default) so a
scripted session can drive the shell in tests.
"""

from typing import Callable, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from expense_ledger import validation
from expense_ledger.logs import get_logger
from expense_ledger.models import Expense
from expense_ledger.tracker import (
    CLEAR_CONFIRMATION,
    PAYMENT_METHOD_OPTIONS,
    ExpenseTracker,
)
from expense_ledger.validation import format_currency

logger = get_logger(__name__)

MENU = [
    ("EXPENSE MANAGEMENT", [
        (1, "Add Expense"),
        (2, "Quick Add Expense"),
        (3, "View All Expenses"),
        (4, "View Expense Details"),
        (5, "View Expenses by Category"),
        (6, "View Recurring Expenses"),
    ]),
    ("SEARCH & FILTER", [(7, "Search Expenses")]),
    ("EDIT & MANAGE", [
        (8, "Update Expense"),
        (9, "Delete Expense"),
        (10, "Duplicate Expense"),
    ]),
    ("UNDO/REDO", [
        (11, "Undo Last Operation"),
        (12, "Redo Last Operation"),
    ]),
    ("REPORTS & ANALYTICS", [
        (13, "Generate Summary & Analytics"),
        (14, "Export to CSV"),
    ]),
    ("UTILITIES", [
        (15, "Backup Data"),
        (16, "Clear All Data"),
    ]),
]
MAX_CHOICE = 16

SORT_OPTIONS = {1: "date", 2: "amount", 3: "category", 4: "id"}

UPDATE_FIELDS = {
    1: "description",
    2: "amount",
    3: "category",
    4: "date",
    5: "notes",
    6: "payment_method",
    7: "location",
    8: "is_recurring",
}


class ExpenseShell:
    def __init__(
        self,
        tracker: ExpenseTracker,
        console: Optional[Console] = None,
        input_func: Optional[Callable[[str], str]] = None,
    ):
        self.tracker = tracker
        self.console = console or Console()
        self.input_func = input_func or self.console.input
        self.running = True

    # -----------------------
    # Input helpers (retry until valid)
    # -----------------------
    def _say(self, text: str):
        self.console.print(text)

    def _error(self, text: str):
        self.console.print(f"[red]Error:[/red] {text}")

    def ask_string(self, prompt: str, allow_empty: bool = False) -> str:
        while True:
            value = validation.normalize(self.input_func(prompt))
            if not validation.is_storable(value):
                self._error("The '|' character is not allowed. Please try again.")
                continue
            if value or allow_empty:
                return value
            self._error("Input cannot be empty. Please try again.")

    def ask_amount(self, prompt: str) -> float:
        while True:
            amount = validation.parse_amount(self.input_func(prompt))
            if amount is not None:
                return amount
            self._error("Please enter a valid positive amount (e.g., 10.50).")

    def ask_date(self, prompt: str) -> str:
        while True:
            value = validation.normalize(
                self.input_func(f"{prompt} (YYYY-MM-DD) or press Enter for today: ")
            )
            if not value:
                return validation.today()
            if validation.is_valid_date(value):
                return value
            self._error("Please enter a real date in YYYY-MM-DD format.")

    def ask_int(self, prompt: str, minimum: int = 1, maximum: Optional[int] = None) -> int:
        while True:
            value = validation.parse_int(self.input_func(prompt))
            if value is None:
                self._error("Please enter a valid number.")
                continue
            if value < minimum or (maximum is not None and value > maximum):
                upper = maximum if maximum is not None else "any"
                self._error(f"Please enter a number between {minimum} and {upper}.")
                continue
            return value

    def ask_bool(self, prompt: str) -> bool:
        while True:
            value = validation.parse_bool(self.input_func(f"{prompt} (y/n): "))
            if value is not None:
                return value
            self._error("Please enter 'y' for yes or 'n' for no.")

    def _optional_amount(self, prompt: str) -> Optional[float]:
        raw = validation.normalize(self.input_func(prompt))
        return validation.parse_amount(raw) if raw else None

    def _optional_date(self, prompt: str) -> Optional[str]:
        raw = validation.normalize(self.input_func(prompt))
        return raw if raw and validation.is_valid_date(raw) else None

    def _show_category_suggestions(self):
        suggestions = self.tracker.top_categories(5)
        if suggestions:
            self._say("Category suggestions: " + escape(" ".join(suggestions)))

    # -----------------------
    # Rendering
    # -----------------------
    def _expense_table(self, expenses: List[Expense], title: Optional[str] = None) -> Table:
        table = Table(title=title, box=box.SIMPLE_HEAD)
        table.add_column("ID", justify="right")
        table.add_column("Description")
        table.add_column("Amount", justify="right")
        table.add_column("Category")
        table.add_column("Date")
        table.add_column("Payment")
        table.add_column("Rec")
        for e in expenses:
            table.add_row(
                str(e.id),
                escape(e.description[:19]),
                format_currency(e.amount),
                escape(e.category[:11]),
                e.date,
                escape(e.payment_method[:7]),
                "Y" if e.is_recurring else "N",
            )
        return table

    def show_details(self, e: Expense):
        lines = [
            f"ID: {e.id}",
            f"Description: {escape(e.description)}",
            f"Amount: {format_currency(e.amount)}",
            f"Category: {escape(e.category)}",
            f"Date: {e.date}",
            f"Payment Method: {escape(e.payment_method)}",
            f"Location: {escape(e.location)}",
            f"Recurring: {'Yes' if e.is_recurring else 'No'}",
        ]
        if e.notes:
            lines.append(f"Notes: {escape(e.notes)}")
        self.console.print(Panel("\n".join(lines), title="Expense Details", expand=False))

    def show_results(self, results: List[Expense], criteria: str):
        self._say(f"\n[bold]Search Results ({escape(criteria)})[/bold]")
        if not results:
            self._say("No expenses found matching the criteria.")
            return
        self.console.print(self._expense_table(results))
        self._say(f"Found {len(results)} expenses")
        self._say(f"Total amount: {format_currency(self.tracker.total_amount(results))}")

    def show_menu(self):
        lines = []
        for section, items in MENU:
            lines.append(f"[bold]{section}[/bold]")
            for number, label in items:
                lines.append(f"  {number:>2}. {label}")
            lines.append("")
        lines.append("   0. Exit Application")
        self.console.print(Panel("\n".join(lines), title="EXPENSE TRACKER", expand=False))

    # -----------------------
    # Menu actions
    # -----------------------
    def _require_expenses(self, message: str) -> bool:
        if not self.tracker.expenses:
            self._say(message)
            return False
        return True

    def _ask_existing_id(self, prompt: str) -> Optional[Expense]:
        expense_id = self.ask_int(prompt)
        exp = self.tracker.find_by_id(expense_id)
        if exp is None:
            logger.info("Expense id=%s not found", expense_id)
            self._say(f"Expense with ID {expense_id} not found.")
        return exp

    def add_expense(self):
        self._say("\n[bold]=== Add New Expense ===[/bold]")
        description = self.ask_string("Enter description: ")
        amount = self.ask_amount("Enter amount: $")
        self._show_category_suggestions()
        category = self.ask_string("Enter category: ")
        date = self.ask_date("Enter date")
        notes = self.ask_string("Enter notes (optional): ", allow_empty=True)
        self._say("Payment method options: " + ", ".join(PAYMENT_METHOD_OPTIONS))
        payment_method = self.ask_string("Enter payment method: ")
        location = self.ask_string("Enter location (optional): ", allow_empty=True)
        is_recurring = self.ask_bool("Is this a recurring expense?")
        exp = self.tracker.add_expense(
            description=description,
            amount=amount,
            category=category,
            date=date,
            notes=notes,
            is_recurring=is_recurring,
            payment_method=payment_method,
            location=location,
        )
        suffix = " (Marked as recurring)" if exp.is_recurring else ""
        self._say(f"[green]* Expense added successfully! ID: {exp.id}{suffix}[/green]")

    def quick_add(self):
        self._say("\n[bold]=== Quick Add Expense ===[/bold]")
        description = self.ask_string("Description: ")
        amount = self.ask_amount("Amount: $")
        default = self.tracker.default_category()
        category = self.ask_string(f"Category (default: {default}): ", allow_empty=True)
        exp = self.tracker.quick_add(description, amount, category or None)
        self._say(f"[green]* Quick expense added! ID: {exp.id}[/green]")

    def view_all(self):
        self._say("\n[bold]=== All Expenses ===[/bold]")
        if not self._require_expenses("No expenses found."):
            return
        self._say("Sort by: 1) Date  2) Amount  3) Category  4) ID (default)")
        choice = self.ask_int("Choose sort option (1-4): ", 1, 4)
        self.console.print(self._expense_table(self.tracker.sorted_expenses(SORT_OPTIONS[choice])))
        self._say(f"Total expenses: {len(self.tracker.expenses)}")
        self._say(f"Total amount: {format_currency(self.tracker.total_amount())}")

    def view_details(self):
        self._say("\n[bold]=== View Expense Details ===[/bold]")
        if not self._require_expenses("No expenses found."):
            return
        exp = self._ask_existing_id("Enter expense ID to view: ")
        if exp is not None:
            self.show_details(exp)

    def view_by_category(self):
        self._say("\n[bold]=== Expenses by Category ===[/bold]")
        if not self._require_expenses("No expenses found."):
            return
        grand_total = self.tracker.total_amount()
        totals = self.tracker.totals_by_category()
        for category, items in self.tracker.expenses_by_category().items():
            total = totals[category]
            pct = (total / grand_total * 100) if grand_total > 0 else 0.0
            title = f"[*] Category: {escape(category)} (Total: {format_currency(total)} - {pct:.1f}%)"
            self.console.print(self._expense_table(items, title=title))

    def view_recurring(self):
        self._say("\n[bold]=== Recurring Expenses ===[/bold]")
        recurring = self.tracker.recurring_expenses()
        if not recurring:
            self._say("No recurring expenses found.")
            return
        self.console.print(self._expense_table(recurring))
        self._say(f"Total recurring expenses: {len(recurring)}")
        self._say(f"Monthly recurring amount: {format_currency(self.tracker.recurring_total())}")

    def search(self):
        self._say("\n[bold]=== Search Expenses ===[/bold]")
        self._say("1. Search by description\n2. Search by category\n3. Search by date range\n"
                  "4. Search by amount range\n5. Search by payment method\n"
                  "6. Advanced search (multiple criteria)")
        choice = self.ask_int("Choose search option (1-6): ", 1, 6)
        if choice == 1:
            term = self.ask_string("Enter description to search: ")
            self.show_results(self.tracker.search_description(term), f"Description containing: {term.lower()}")
        elif choice == 2:
            self._say("Available categories: " + escape(" ".join(sorted(self.tracker.categories))))
            category = self.ask_string("Enter category to search: ")
            self.show_results(self.tracker.search_category(category), f"Category: {category}")
        elif choice == 3:
            start = self.ask_date("Enter start date")
            end = self.ask_date("Enter end date")
            if start > end:
                start, end = end, start
                self._say("Note: Date range corrected (start < end)")
            self.show_results(self.tracker.search_date_range(start, end), f"Date range: {start} to {end}")
        elif choice == 4:
            low = self.ask_amount("Enter minimum amount: $")
            high = self.ask_amount("Enter maximum amount: $")
            if low > high:
                low, high = high, low
                self._say("Note: Amount range corrected (min < max)")
            self.show_results(
                self.tracker.search_amount_range(low, high),
                f"Amount range: {format_currency(low)} to {format_currency(high)}",
            )
        elif choice == 5:
            self._say("Available payment methods: " + escape(" ".join(self.tracker.payment_methods())))
            method = self.ask_string("Enter payment method to search: ")
            self.show_results(self.tracker.search_payment_method(method), f"Payment method: {method}")
        else:
            self.advanced_search()

    def advanced_search(self):
        self._say("\n[bold]=== Advanced Search ===[/bold]")
        self._say("Enter search criteria (leave empty to skip):")
        criteria = {
            "description": self.ask_string("Description contains: ", allow_empty=True) or None,
            "category": self.ask_string("Category: ", allow_empty=True) or None,
            "payment_method": self.ask_string("Payment method: ", allow_empty=True) or None,
            "min_amount": self._optional_amount("Minimum amount (or empty): "),
            "max_amount": self._optional_amount("Maximum amount (or empty): "),
            "start_date": self._optional_date("Start date (YYYY-MM-DD or empty): "),
            "end_date": self._optional_date("End date (YYYY-MM-DD or empty): "),
        }
        used = [name.replace("_", " ") for name, value in criteria.items() if value is not None]
        label = "Advanced search with " + (", ".join(used) if used else "no criteria")
        self.show_results(self.tracker.advanced_search(**criteria), label)

    def _ask_field_value(self, name: str):
        if name == "description":
            return self.ask_string("Enter new description: ")
        if name == "amount":
            return self.ask_amount("Enter new amount: $")
        if name == "category":
            self._show_category_suggestions()
            return self.ask_string("Enter new category: ")
        if name == "date":
            return self.ask_date("Enter new date")
        if name == "notes":
            return self.ask_string("Enter new notes: ", allow_empty=True)
        if name == "payment_method":
            return self.ask_string("Enter new payment method: ")
        if name == "location":
            return self.ask_string("Enter new location: ", allow_empty=True)
        return self.ask_bool("Is this a recurring expense?")

    def update(self):
        self._say("\n[bold]=== Update Expense ===[/bold]")
        if not self._require_expenses("No expenses to update."):
            return
        exp = self._ask_existing_id("Enter expense ID to update: ")
        if exp is None:
            return
        self._say("\nCurrent expense details:")
        self.show_details(exp)
        self._say("\nWhat would you like to update?")
        self._say("1. Description\n2. Amount\n3. Category\n4. Date\n5. Notes\n"
                  "6. Payment Method\n7. Location\n8. Recurring Status\n9. All fields")
        choice = self.ask_int("Choose option (1-9): ", 1, 9)
        names = list(UPDATE_FIELDS.values()) if choice == 9 else [UPDATE_FIELDS[choice]]
        changes = {name: self._ask_field_value(name) for name in names}
        result = self.tracker.update_expense(exp.id, **changes)
        if result is None:
            self._say(f"Expense with ID {exp.id} not found.")
        elif result.rejected:
            self._say(f"[yellow]Some values were rejected: {', '.join(result.rejected)}[/yellow]")
        else:
            self._say("[green]* Expense updated successfully![/green]")

    def delete(self):
        self._say("\n[bold]=== Delete Expense ===[/bold]")
        if not self._require_expenses("No expenses to delete."):
            return
        exp = self._ask_existing_id("Enter expense ID to delete: ")
        if exp is None:
            return
        self._say("\nExpense to be deleted:")
        self.show_details(exp)
        confirmed = self.ask_bool("Are you sure you want to delete this expense?")
        if self.tracker.delete_expense(exp.id, confirmed=confirmed):
            self._say("[green]* Expense deleted successfully![/green]")
        else:
            logger.info("Delete of expense id=%s cancelled", exp.id)
            self._say("Delete operation cancelled.")

    def duplicate(self):
        self._say("\n[bold]=== Duplicate Expense ===[/bold]")
        if not self._require_expenses("No expenses to duplicate."):
            return
        expense_id = self.ask_int("Enter expense ID to duplicate: ")
        dup = self.tracker.duplicate_expense(expense_id)
        if dup is None:
            self._say(f"Expense with ID {expense_id} not found.")
            return
        self._say(f"[green]* Expense duplicated successfully! New ID: {dup.id}[/green]")

    def undo(self):
        if self.tracker.undo():
            self._say("[green]* Last operation undone successfully![/green]")
        else:
            self._say("No operations to undo.")

    def redo(self):
        if self.tracker.redo():
            self._say("[green]* Last operation redone successfully![/green]")
        else:
            self._say("No operations to redo.")

    def summary(self):
        self._say("\n[bold]=== Expense Summary & Analytics ===[/bold]")
        if not self._require_expenses("No expenses found."):
            return
        s = self.tracker.summary()
        self._say("[*] Overall Statistics:")
        self._say(f"Total expenses: {s.count}")
        self._say(f"Total amount: {format_currency(s.total)}")
        self._say(f"Average expense: {format_currency(s.average)}")
        self._say(f"Highest expense: {format_currency(s.highest.amount)} ({escape(s.highest.description)})")
        self._say(f"Lowest expense: {format_currency(s.lowest.amount)} ({escape(s.lowest.description)})")

        table = Table(title="[*] Category Breakdown", box=box.SIMPLE_HEAD)
        for col in ("Category", "Count", "Total", "Avg", "Percentage"):
            table.add_column(col)
        for category, total in s.category_totals.items():
            count = s.category_counts[category]
            pct = (total / s.total * 100) if s.total > 0 else 0.0
            table.add_row(escape(category[:14]), str(count), format_currency(total),
                          format_currency(total / count), f"{pct:.1f}%")
        self.console.print(table)

        self._say("[*] Payment Method Breakdown:")
        for method, total in s.payment_totals.items():
            pct = (total / s.total * 100) if s.total > 0 else 0.0
            self._say(f"{escape(method):<15}: {format_currency(total)} ({pct:.1f}%)")

        if len(s.monthly_totals) > 1:
            self._say("\n[*] Monthly Breakdown:")
            for month, total in s.monthly_totals.items():
                self._say(f"{month}: {format_currency(total)}")

        if s.recurring_count:
            self._say("\n[*] Recurring Expenses:")
            self._say(f"Count: {s.recurring_count}")
            self._say(f"Monthly total: {format_currency(s.recurring_total)}")
            self._say(f"Annual projection: {format_currency(s.annual_projection)}")

    def export_csv(self):
        self._say("\n[bold]=== Export to CSV ===[/bold]")
        if not self._require_expenses("No expenses to export."):
            return
        name = self.ask_string("Enter CSV filename (without .csv extension): ")
        path = self.tracker.export_csv(name)
        if path is None:
            self._error("Could not create CSV file.")
            return
        self._say(f"[green]* Expenses exported to {escape(path)} successfully![/green]")

    def backup(self):
        path = self.tracker.backup()
        if path is None:
            self._error("Could not create backup file.")
            return
        self._say(f"[green]* Data backed up to: {escape(path)}[/green]")

    def clear_all(self):
        self._say("\n[bold]=== Clear All Data ===[/bold]")
        self._say("[red]WARNING: This will permanently delete ALL expenses![/red]")
        confirmation = self.ask_string(f"Type '{CLEAR_CONFIRMATION}' to confirm: ")
        if confirmation != CLEAR_CONFIRMATION:
            logger.info("Clear cancelled: confirmation phrase not typed")
            self._say("Operation cancelled.")
            return
        self.tracker.clear()
        self._say("[green]* All expenses have been deleted.[/green]")

    # -----------------------
    # Main loop
    # -----------------------
    def dispatch(self, choice: int):
        actions = {
            1: self.add_expense,
            2: self.quick_add,
            3: self.view_all,
            4: self.view_details,
            5: self.view_by_category,
            6: self.view_recurring,
            7: self.search,
            8: self.update,
            9: self.delete,
            10: self.duplicate,
            11: self.undo,
            12: self.redo,
            13: self.summary,
            14: self.export_csv,
            15: self.backup,
            16: self.clear_all,
        }
        if choice == 0:
            self.running = False
            self._say("Thank you for using Expense Tracker! Your data has been saved automatically.")
            return
        actions[choice]()

    def run(self):
        self._say(self.tracker.load_result.message())
        while self.running:
            self.show_menu()
            choice = self.ask_int(f"\nEnter your choice (0-{MAX_CHOICE}): ", 0, MAX_CHOICE)
            self.dispatch(choice)
