# views/common.py

"""
Small widgets reused by several pages.
"""

from datetime import date

import pandas as pd
import streamlit as st

from utils.exports import EXPORT_FORMATS, download_payload

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


def download_section(df: pd.DataFrame, basename: str, key: str):
    fmt = st.radio("Formato do arquivo", list(EXPORT_FORMATS), horizontal=True, key=f"{key}_fmt")
    data, fname, mime = download_payload(df, fmt, basename)
    st.download_button("📥 Baixar", data=data, file_name=fname, mime=mime, key=f"{key}_dl")


def month_picker(key: str):
    """(year, month) selectors side by side, defaulting to today."""
    today = date.today()
    c1, c2 = st.columns(2)
    month = c1.selectbox(
        "Mês",
        range(1, 13),
        index=today.month - 1,
        format_func=lambda m: MONTH_NAMES[m - 1],
        key=f"{key}_month",
    )
    year = c2.number_input("Ano", min_value=2020, max_value=2100, value=today.year, step=1, key=f"{key}_year")
    return int(year), int(month)


def employee_names(df_emp: pd.DataFrame) -> dict:
    if df_emp.empty:
        return {}
    return dict(zip(df_emp["id"], df_emp["full_name"]))


def show_insights(items):
    """Render AI suggestion cards ({title, description|desc, type})."""
    show = {"critical": st.error, "warning": st.warning, "success": st.success}
    for item in items or []:
        if not isinstance(item, dict):
            continue
        text = f"**{item.get('title', '')}** – {item.get('description') or item.get('desc', '')}"
        show.get(item.get("type"), st.info)(text)
