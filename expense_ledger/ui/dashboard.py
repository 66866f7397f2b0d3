"""
dashboard.py - Streamlit UI entrypoint and orchestration

This module wires the UI components (expense_ledger.ui.components) with the
business logic (expense_ledger.tracker). The main() function builds the sidebar
menu and routes actions to components and tracker methods.

Design notes:
 - Keep the dashboard responsible only for UI orchestration and presentation.
 - All persistence and business rules live in expense_ledger.tracker.
 - The tracker is kept in st.session_state so the undo/redo history survives
   Streamlit reruns.
"""

import streamlit as st

from expense_ledger.tracker import CLEAR_CONFIRMATION, ExpenseTracker
from expense_ledger.ui import components
from expense_ledger.validation import format_currency


def get_tracker() -> ExpenseTracker:
    if "tracker" not in st.session_state:
        st.session_state["tracker"] = ExpenseTracker()
    return st.session_state["tracker"]


def main():
    """
    Streamlit page: sidebar menu controls which view is shown.
    """
    st.title("Expense Tracker Dashboard")
    tracker = get_tracker()
    st.sidebar.caption(tracker.load_result.message())
    st.sidebar.caption(f"Data file: {tracker.data_file}")

    menu = [
        "Add Expense",
        "List Expenses",
        "Search",
        "Summary",
        "Manage Expense",
        "Undo / Redo",
        "Backup & Export",
        "Clear All Expenses",
    ]
    choice = st.sidebar.selectbox("Select an option", menu)

    if choice == "Add Expense":
        def on_submit(exp_input: components.ExpenseInput):
            tracker.add_expense(
                description=exp_input.description,
                amount=exp_input.amount,
                category=exp_input.category,
                date=exp_input.date,
                notes=exp_input.notes,
                is_recurring=exp_input.is_recurring,
                payment_method=exp_input.payment_method,
                location=exp_input.location,
            )

        components.display_expense_form(on_submit, tracker.top_categories(10))

    elif choice == "List Expenses":
        sort_key = components.select_sort_key()
        components.display_expense_list(tracker.sorted_expenses(sort_key), tracker.total_amount())

    elif choice == "Search":
        criteria = components.display_search_form()
        if criteria is not None:
            results = tracker.advanced_search(**criteria)
            components.display_expense_list(results, tracker.total_amount(results), title="Search Results")

    elif choice == "Summary":
        components.display_summary(tracker.summary())

    elif choice == "Manage Expense":
        components.display_manage_expenses(tracker)

    elif choice == "Undo / Redo":
        col1, col2 = st.columns(2)
        with col1:
            if st.button("Undo", disabled=not tracker.can_undo()):
                tracker.undo()
                st.success("Last operation undone.")
        with col2:
            if st.button("Redo", disabled=not tracker.can_redo()):
                tracker.redo()
                st.success("Last operation redone.")
        st.write(f"{len(tracker.expenses)} expenses, total {format_currency(tracker.total_amount())}")

    elif choice == "Backup & Export":
        if st.button("Backup data"):
            path = tracker.backup()
            if path:
                st.success(f"Data backed up to: {path}")
            else:
                st.error("Could not create backup file.")
        name = st.text_input("CSV filename", value="expenses")
        if st.button("Export to CSV"):
            path = tracker.export_csv(name)
            if path:
                st.success(f"Expenses exported to {path}")
            else:
                st.error("Could not create CSV file.")

    elif choice == "Clear All Expenses":
        st.warning("This will permanently delete ALL expenses!")
        typed = st.text_input(f"Type '{CLEAR_CONFIRMATION}' to confirm")
        if st.button("Confirm Clear"):
            if typed.strip() == CLEAR_CONFIRMATION:
                tracker.clear()
                st.success("All expenses cleared.")
            else:
                st.error("Operation cancelled.")


if __name__ == "__main__":
    main()
