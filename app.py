"""
app.py - minimal entrypoint for Streamlit app

Keep this file tiny so streamlit can import it without side-effects.
Run the app with:
    streamlit run app.py

This module simply delegates to expense_ledger.ui.dashboard.main().
"""
import os

import streamlit as _st

# On Streamlit Cloud, transfer secrets to env vars so the tracker can read them
try:
    _secrets = dict(_st.secrets)
except FileNotFoundError:
    _secrets = {}
for _k in ("EXPENSE_LEDGER_FILE", "EXPENSE_LEDGER_LOG_LEVEL"):
    if _secrets.get(_k) and _k not in os.environ:
        os.environ[_k] = str(_secrets[_k])

from expense_ledger.ui import dashboard  # noqa: E402


def main():
    dashboard.main()


if __name__ == "__main__":
    main()
