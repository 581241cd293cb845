# views/vacations.py

"""
Page: Férias
Vacation registration (FÉRIAS schedule rows), approval, timeline and metrics.
"""

from datetime import date, timedelta

import pandas as pd
import streamlit as st

from settings.constants import SCHEDULE_STATUS_LABELS, SCHEDULE_STATUSES
from utils.calculations import vacation_days_in_month, vacation_periods, working_days_between
from utils.errors import GestaoError
from utils.repository import (
    delete_schedules_by_range,
    get_schedules_by_range,
    register_vacation,
    set_vacation_status,
)
from utils.roles import operational_only
from views.charts import chart_vacation_gantt, chart_vacations_per_day
from views.common import download_section, employee_names


def _load_periods(year: int) -> list:
    try:
        rows = get_schedules_by_range(f"{year}-01-01", f"{year}-12-31")
    except GestaoError as e:
        st.error(f"❌ {e}")
        return []
    return vacation_periods(rows)


def periods_frame(periods, names) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Colaborador": names.get(p["employee_id"], str(p["employee_id"])),
            "Início": p["start"],
            "Fim": p["end"],
            "Dias corridos": p["days"],
            "Dias úteis": working_days_between(p["start"], p["end"]),
            "Status": SCHEDULE_STATUS_LABELS.get(p["status"], p["status"]),
        }
        for p in periods
    ], columns=["Colaborador", "Início", "Fim", "Dias corridos", "Dias úteis", "Status"])


# -------------------------------------------------------------
# PAGE DISPATCHER
# -------------------------------------------------------------
def render_vacations(df_emp: pd.DataFrame, action: str):
    st.title("Férias")

    if df_emp is None:
        df_emp = pd.DataFrame()

    names = employee_names(df_emp)
    year = st.number_input("Ano", min_value=2020, max_value=2100, value=date.today().year, step=1)
    periods = _load_periods(int(year))

    if action == "Planejamento":
        _page_overview(periods, names, int(year))

    elif action == "Registrar":
        _page_register(df_emp)

    elif action == "Aprovar / Excluir":
        _page_manage(periods, names)


# -------------------------------------------------------------
# OVERVIEW
# -------------------------------------------------------------
def _page_overview(periods, names, year):
    today = date.today()
    month = today.month if today.year == year else 1

    c1, c2, c3 = st.columns(3)
    c1.metric("Períodos no ano", len(periods))
    c2.metric("Pendentes de aprovação", sum(1 for p in periods if p["status"] == "pending"))
    c3.metric("Dias úteis de férias no mês", vacation_days_in_month(periods, year, month))

    fig = chart_vacation_gantt(periods, names)
    if fig:
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("Nenhuma férias registrada no ano.")
        return

    st.markdown("### Férias por dia")
    selected = st.date_input(
        "Intervalo",
        value=(date(year, 1, 1), date(year, 12, 31)),
        format="DD/MM/YYYY",
    )
    selected_range = selected if isinstance(selected, tuple) and len(selected) == 2 else None
    fig = chart_vacations_per_day(periods, selected_range)
    if fig:
        st.plotly_chart(fig, use_container_width=True)

    df = periods_frame(periods, names)
    st.dataframe(df, use_container_width=True, hide_index=True)
    download_section(df, f"ferias_{year}", key="vac")


# -------------------------------------------------------------
# REGISTER
# -------------------------------------------------------------
def _page_register(df_emp: pd.DataFrame):
    st.subheader("Registrar férias")

    employees = operational_only(df_emp.to_dict("records")) if not df_emp.empty else []
    if not employees:
        st.info("Nenhum colaborador operacional cadastrado.")
        return
    names = {e["id"]: e.get("full_name", "") for e in employees}

    with st.form("register_vacation"):
        emp_id = st.selectbox("Colaborador", list(names), format_func=names.get)
        c1, c2 = st.columns(2)
        start = c1.date_input("Início", value=date.today(), format="DD/MM/YYYY")
        end = c2.date_input("Fim", value=date.today() + timedelta(days=29), format="DD/MM/YYYY")
        status = st.selectbox("Status", SCHEDULE_STATUSES, index=1, format_func=SCHEDULE_STATUS_LABELS.get)
        notes = st.text_input("Observações")
        submitted = st.form_submit_button("Registrar")

    if not submitted:
        return

    if end < start:
        st.error("A data final deve ser posterior à data inicial.")
        return

    st.caption(f"{(end - start).days + 1} dias corridos, {working_days_between(start, end)} dias úteis.")
    try:
        register_vacation(emp_id, start, end, status=status, notes=notes or None)
        st.success("Férias registradas!")
    except (GestaoError, ValueError) as e:
        st.error(f"❌ {e}")


# -------------------------------------------------------------
# APPROVE / DELETE
# -------------------------------------------------------------
def _page_manage(periods, names):
    st.subheader("Aprovar ou excluir férias")

    if not periods:
        st.info("Nenhuma férias registrada.")
        return

    labels = {
        i: f"{names.get(p['employee_id'], p['employee_id'])}: "
           f"{p['start']:%d/%m/%Y} – {p['end']:%d/%m/%Y} ({SCHEDULE_STATUS_LABELS.get(p['status'], p['status'])})"
        for i, p in enumerate(periods)
    }
    idx = st.selectbox("Período", list(labels), format_func=labels.get)
    p = periods[idx]
    start, end = p["start"].isoformat(), p["end"].isoformat()

    c1, c2, c3 = st.columns(3)
    try:
        if c1.button("✅ Aprovar"):
            set_vacation_status(p["employee_id"], start, end, "approved")
            st.rerun()
        if c2.button("↩️ Voltar a pendente"):
            set_vacation_status(p["employee_id"], start, end, "pending")
            st.rerun()
        if c3.button("🗑️ Excluir"):
            delete_schedules_by_range(p["employee_id"], start, end)
            st.rerun()
    except GestaoError as e:
        st.error(f"❌ {e}")
