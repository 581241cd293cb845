# views/portal.py

"""
Page: Meu Portal
Self service for the signed-in collaborator: own schedule, hours bank,
vacation request and received feedbacks.
"""

from datetime import date, timedelta

import pandas as pd
import streamlit as st

from settings.constants import SCHEDULE_STATUS_LABELS
from utils.calculations import vacation_periods, working_days_between
from utils.errors import GestaoError
from utils.hours_bank import balance_status, format_balance
from utils.repository import (
    get_employee_detailed_balance,
    get_employee_feedbacks,
    get_employee_hours_bank_transactions,
    get_employee_schedules,
    register_vacation,
)
from utils.schedules import month_bounds
from views.common import month_picker


def render_portal(profile):
    st.title("Meu Portal")

    if not profile:
        st.warning("Seu usuário não está vinculado a um cadastro de colaborador.")
        return

    emp_id = profile["id"]
    st.write(f"Olá, **{profile.get('full_name', '')}**!")

    tab_sched, tab_bank, tab_vac, tab_fb = st.tabs(["Minha escala", "Banco de horas", "Férias", "Feedbacks"])

    # --------------------------------------------------------
    # SCHEDULE
    # --------------------------------------------------------
    with tab_sched:
        year, month = month_picker("portal")
        start, end = month_bounds(year, month)
        try:
            rows = get_employee_schedules(emp_id, start, end)
        except GestaoError as e:
            st.error(f"❌ {e}")
            rows = []

        if rows:
            df = pd.DataFrame(rows)
            df["data"] = pd.to_datetime(df["schedule_date"]).dt.strftime("%d/%m (%a)")
            df["status"] = df["status"].map(lambda s: SCHEDULE_STATUS_LABELS.get(s, s))
            st.dataframe(df[["data", "shift_type", "status"]].rename(columns={"shift_type": "turno"}),
                         use_container_width=True, hide_index=True)
        else:
            st.info("Nenhuma escala publicada para o mês.")

    # --------------------------------------------------------
    # HOURS BANK
    # --------------------------------------------------------
    with tab_bank:
        balance = get_employee_detailed_balance(emp_id)
        seconds = float((balance or {}).get("total_balance") or 0) * 3600
        icon = {"critical": "🔴", "warning": "🟡", "healthy": "🟢"}[balance_status(seconds)]
        st.metric("Saldo atual", f"{icon} {format_balance(seconds)}")

        try:
            transactions = get_employee_hours_bank_transactions(emp_id)
        except GestaoError as e:
            st.error(f"❌ {e}")
            transactions = []
        if transactions:
            cols = ["transaction_date", "transaction_type", "hours", "description", "status"]
            df = pd.DataFrame(transactions)
            st.dataframe(df[[c for c in cols if c in df.columns]], use_container_width=True, hide_index=True)

    # --------------------------------------------------------
    # VACATION REQUEST
    # --------------------------------------------------------
    with tab_vac:
        today = date.today()
        try:
            rows = get_employee_schedules(emp_id, f"{today.year}-01-01", f"{today.year + 1}-12-31")
        except GestaoError as e:
            st.error(f"❌ {e}")
            rows = []
        for p in vacation_periods(rows):
            st.write(
                f"🏖️ {p['start']:%d/%m/%Y} – {p['end']:%d/%m/%Y} ({p['days']} dias) · "
                f"{SCHEDULE_STATUS_LABELS.get(p['status'], p['status'])}"
            )

        st.info("A solicitação fica pendente até a aprovação do gestor.")
        with st.form("portal_vacation"):
            c1, c2 = st.columns(2)
            start = c1.date_input("Data de início", value=today + timedelta(days=30), format="DD/MM/YYYY")
            end = c2.date_input("Data de término", value=today + timedelta(days=44), format="DD/MM/YYYY")
            submitted = st.form_submit_button("Solicitar férias")

        if submitted:
            if end < start:
                st.error("A data de término deve ser posterior à data de início.")
            elif start < today:
                st.error("A data de início não pode estar no passado.")
            else:
                try:
                    register_vacation(emp_id, start, end, status="pending", notes="Solicitado pelo portal")
                    st.success(
                        f"Solicitação enviada: {(end - start).days + 1} dias "
                        f"({working_days_between(start, end)} úteis)."
                    )
                except (GestaoError, ValueError) as e:
                    st.error(f"❌ {e}")

    # --------------------------------------------------------
    # FEEDBACKS
    # --------------------------------------------------------
    with tab_fb:
        try:
            feedbacks = get_employee_feedbacks(emp_id)
        except GestaoError as e:
            st.error(f"❌ {e}")
            feedbacks = []
        if not feedbacks:
            st.info("Nenhum feedback recebido.")
        for fb in feedbacks:
            with st.expander(f"{int(fb['period_month']):02d}/{fb['period_year']} · {fb.get('status', '')}"):
                st.markdown(f"**Pontos fortes:** {fb.get('strengths') or '—'}")
                st.markdown(f"**Pontos de melhoria:** {fb.get('improvements') or '—'}")
