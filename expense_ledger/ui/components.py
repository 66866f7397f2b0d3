"""
components.py - reusable Streamlit components / forms / displays

This module contains pure-UI helpers used by the dashboard:
 - display_expense_form(on_submit, category_suggestions)
 - display_expense_list (table + XLSX export)
 - display_search_form / display_summary / display_manage_expenses

The forms enforce the same validation rules as the text menu:
 - description and category required
 - amount > 0
 - no '|' in free-text fields (the storage delimiter)
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import datetime
import time

import altair as alt
import pandas as pd
import streamlit as st

from expense_ledger import export, validation
from expense_ledger.models import Expense
from expense_ledger.tracker import PAYMENT_METHOD_OPTIONS, SORT_KEYS, Summary

PALETTE = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf"
]


# Trigger a Streamlit rerun in a way compatible with multiple Streamlit versions.
def _trigger_rerun():
    if hasattr(st, "rerun"):
        st.rerun()
    elif hasattr(st, "experimental_rerun"):
        st.experimental_rerun()
    else:
        st.session_state["_rerun_flag"] = st.session_state.get("_rerun_flag", 0) + int(time.time())


def _color_scale(categories: List[str]) -> alt.Scale:
    # cycle the palette so every category gets a stable color
    times = (len(categories) + len(PALETTE) - 1) // len(PALETTE) or 1
    return alt.Scale(domain=categories, range=(PALETTE * times)[: len(categories)])


@dataclass
class ExpenseInput:
    """Lightweight container passed to the on_submit callback."""
    description: str
    amount: float
    category: str
    date: str  # ISO date string
    notes: str
    is_recurring: bool
    payment_method: str
    location: str


def _text_errors(**values: str) -> List[str]:
    return [
        f"{name.replace('_', ' ').capitalize()} may not contain '|'."
        for name, value in values.items()
        if not validation.is_storable(value)
    ]


def display_expense_form(on_submit: Callable[[ExpenseInput], None], category_suggestions: List[str]):
    """
    Display the 'Add Expense' form.

    Parameters:
      - on_submit: callback invoked with ExpenseInput when the form validates
      - category_suggestions: most used categories, offered in a dropdown
    """
    st.header("Add Expense")
    with st.form(key="expense_form"):
        description = st.text_input("Description")
        amount = st.number_input("Amount", min_value=0.0, format="%.2f")
        new_opt = "New category..."
        selected_cat = st.selectbox("Category", options=list(category_suggestions) + [new_opt])
        new_category = st.text_input("New category name (when 'New category...' is selected)")
        date_val = st.date_input("Date", value=datetime.date.today())
        notes = st.text_input("Notes (optional)")
        payment_method = st.selectbox("Payment method", options=PAYMENT_METHOD_OPTIONS)
        location = st.text_input("Location (optional)")
        is_recurring = st.checkbox("Recurring expense")

        if st.form_submit_button("Add Expense"):
            category = new_category if selected_cat == new_opt else selected_cat
            date_iso = date_val.isoformat()
            errors = _text_errors(description=description, category=category, notes=notes, location=location)
            if not description.strip():
                errors.append("Description is required.")
            if not (category or "").strip():
                errors.append("Category is required.")
            if amount <= 0:
                errors.append("Amount must be greater than 0.")
            if not validation.is_valid_date(date_iso):
                errors.append("Date must be between 1900 and 2100.")
            if errors:
                for msg in errors:
                    st.error(msg)
                return
            on_submit(ExpenseInput(
                description=description.strip(),
                amount=round(amount, 2),
                category=category.strip(),
                date=date_iso,
                notes=notes.strip(),
                is_recurring=is_recurring,
                payment_method=payment_method,
                location=location.strip(),
            ))
            st.success("Expense added.")


def display_expense_list(expenses: List[Expense], total: float, title: str = "Expense List"):
    """
    Render expenses as an interactive table and provide an XLSX export button.
    """
    st.header(title)
    if not expenses:
        st.write("No expenses recorded.")
        return
    st.markdown(f"**Total: {validation.format_currency(total)}** ({len(expenses)} expenses)")

    df = pd.DataFrame([e.to_dict() for e in expenses])
    st.dataframe(df.style.format({"amount": "{:.2f}"}), use_container_width=True)

    st.download_button(
        label="Download as XLSX",
        data=export.to_xlsx_bytes(expenses),
        file_name="expenses.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )


def select_sort_key() -> str:
    labels = {"date": "Date (newest first)", "amount": "Amount (highest first)",
              "category": "Category (A-Z)", "id": "ID"}
    return st.selectbox("Sort by", options=list(SORT_KEYS), index=3, format_func=labels.get)


def display_search_form() -> Optional[Dict]:
    """
    Advanced search criteria; blank fields are skipped.
    Returns the keyword arguments for tracker.advanced_search, or None until submitted.
    """
    with st.form(key="search_form"):
        description = st.text_input("Description contains")
        category = st.text_input("Category")
        payment_method = st.text_input("Payment method")
        col1, col2 = st.columns(2)
        with col1:
            min_amount = st.text_input("Minimum amount")
            start_date = st.text_input("Start date (YYYY-MM-DD)")
        with col2:
            max_amount = st.text_input("Maximum amount")
            end_date = st.text_input("End date (YYYY-MM-DD)")
        if not st.form_submit_button("Search"):
            return None
    return {
        "description": description or None,
        "category": category or None,
        "payment_method": payment_method or None,
        "min_amount": validation.parse_amount(min_amount) if min_amount.strip() else None,
        "max_amount": validation.parse_amount(max_amount) if max_amount.strip() else None,
        "start_date": start_date.strip() if validation.is_valid_date(start_date.strip()) else None,
        "end_date": end_date.strip() if validation.is_valid_date(end_date.strip()) else None,
    }


def display_summary(summary: Summary):
    """Overall statistics, category pie, payment methods, monthly bars, recurring projection."""
    st.header("Summary & Analytics")
    if not summary.count:
        st.write("No expenses found.")
        return
    fmt = validation.format_currency
    col1, col2, col3 = st.columns(3)
    col1.metric("Expenses", summary.count)
    col2.metric("Total", fmt(summary.total))
    col3.metric("Average", fmt(summary.average))
    st.write(f"Highest expense: {fmt(summary.highest.amount)} ({summary.highest.description})")
    st.write(f"Lowest expense: {fmt(summary.lowest.amount)} ({summary.lowest.description})")

    rows = []
    for cat, total in summary.category_totals.items():
        count = summary.category_counts.get(cat, 0)
        pct = (total / summary.total * 100) if summary.total > 0 else 0.0
        rows.append({"category": cat, "count": count, "amount": total,
                     "average": round(total / count, 2) if count else 0.0, "percent": pct})
    df = pd.DataFrame(rows)
    st.subheader("Category Breakdown")
    st.dataframe(df.style.format({"amount": "{:.2f}", "average": "{:.2f}", "percent": "{:.1f}%"}),
                 use_container_width=True)
    ordered = sorted(df["category"].unique())
    pie = alt.Chart(df).mark_arc(innerRadius=50).encode(
        theta=alt.Theta(field="amount", type="quantitative"),
        color=alt.Color(field="category", type="nominal", scale=_color_scale(ordered),
                        legend=alt.Legend(title="Category")),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("amount:Q", title="Amount", format=".2f"),
            alt.Tooltip("percent:Q", title="Share", format=".1f"),
        ],
    ).properties(title="Category share")
    st.altair_chart(pie, use_container_width=True)

    st.subheader("Payment Method Breakdown")
    for method, total in summary.payment_totals.items():
        pct = (total / summary.total * 100) if summary.total > 0 else 0.0
        st.write(f"  {method}: {fmt(total)} ({pct:.1f}%)")

    if len(summary.monthly_totals) > 1:
        st.subheader("Monthly Breakdown")
        months = pd.DataFrame(
            [{"month": m, "amount": t} for m, t in summary.monthly_totals.items()]
        )
        bars = alt.Chart(months).mark_bar().encode(
            x=alt.X("month:O", title="Month", axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("amount:Q", title="Amount"),
            tooltip=[alt.Tooltip("month:O", title="Month"),
                     alt.Tooltip("amount:Q", title="Amount", format=".2f")],
        ).properties(width="container", height=300)
        st.altair_chart(bars, use_container_width=True)

    if summary.recurring_count:
        st.subheader("Recurring Expenses")
        st.write(f"Count: {summary.recurring_count}")
        st.write(f"Monthly total: {fmt(summary.recurring_total)}")
        st.write(f"Annual projection: {fmt(summary.annual_projection)}")


def display_manage_expenses(tracker):
    """
    UI to select, edit, duplicate and delete an existing expense.
    Expects a tracker instance (expense_ledger.tracker.ExpenseTracker).
    """
    st.header("Edit / Delete Expense")
    exs = tracker.list_expenses()
    if not exs:
        st.info("No expenses recorded.")
        return

    options = {f"#{e.id} {e.description} {e.amount:.2f} {e.date}": e.id for e in exs}
    sel_label = st.selectbox("Select expense", options=list(options.keys()))
    expense = tracker.find_by_id(options[sel_label])
    if expense is None:
        st.error("Selected expense not found.")
        return

    with st.form(key=f"edit_expense_{expense.id}"):
        description = st.text_input("Description", value=expense.description)
        amount = st.number_input("Amount", min_value=0.0, format="%.2f", value=float(expense.amount))
        category = st.text_input("Category", value=expense.category)
        date_selected = st.date_input("Date", value=datetime.date.fromisoformat(expense.date))
        notes = st.text_input("Notes", value=expense.notes)
        payment_method = st.text_input("Payment method", value=expense.payment_method)
        location = st.text_input("Location", value=expense.location)
        is_recurring = st.checkbox("Recurring expense", value=expense.is_recurring)

        if st.form_submit_button("Save changes"):
            errors = _text_errors(description=description, category=category, notes=notes,
                                  payment_method=payment_method, location=location)
            if errors:
                for msg in errors:
                    st.error(msg)
            else:
                result = tracker.update_expense(
                    expense.id,
                    description=description,
                    amount=round(amount, 2),
                    category=category,
                    date=date_selected.isoformat(),
                    notes=notes,
                    payment_method=payment_method,
                    location=location,
                    is_recurring=is_recurring,
                )
                if result is None:
                    st.error("Failed to update expense.")
                elif result.rejected:
                    st.warning("Not updated: " + ", ".join(result.rejected))
                else:
                    st.success("Expense updated.")
                    _trigger_rerun()

    st.markdown("---")
    if st.button("Duplicate expense"):
        dup = tracker.duplicate_expense(expense.id)
        if dup is not None:
            st.success(f"Expense duplicated. New ID: {dup.id}")
            _trigger_rerun()

    # Delete UI (separate to avoid accidental deletes)
    st.markdown("---")
    st.write("Delete this expense")
    delete_confirm = st.checkbox("I confirm I want to delete this expense")
    if st.button("Delete expense"):
        if tracker.delete_expense(expense.id, confirmed=delete_confirm):
            st.success("Expense deleted.")
            _trigger_rerun()
        else:
            st.error("Tick the confirmation box to delete this expense.")
