# views/dashboard.py

"""
Page: Dashboard
Operational KPIs (headcount, hours bank), risk list and AI insights.
"""

import pandas as pd
import streamlit as st

from settings.constants import EXPIRY_ALERT_DAYS, NO_EXPIRY_DAYS
from utils.ai import get_chart_deep_dive, get_kpi_tip, get_smart_alerts
from utils.errors import GestaoError
from utils.hours_bank import bank_totals, format_balance, risk_employees
from utils.repository import get_all_employee_balances
from utils.roles import operational_only
from views.charts import balance_by_cluster, chart_balance_by_cluster, chart_employees_per_cluster
from views.common import show_insights


def _balances(df_emp: pd.DataFrame) -> list:
    """
    Balances from the last spreadsheet import of the session, else from the
    database view (hours converted to seconds).
    """
    imported = st.session_state.get("bank_import")
    if imported:
        return imported.balances

    try:
        rows = get_all_employee_balances()
    except GestaoError as e:
        st.warning(f"Não foi possível carregar o banco de horas: {e}")
        return []

    clusters = dict(zip(df_emp["id"], df_emp["cluster"])) if "cluster" in df_emp.columns else {}
    return [
        {
            "id": r.get("employee_id"),
            "name": r.get("full_name") or str(r.get("employee_id")),
            "cluster": clusters.get(r.get("employee_id")) or "Matriz",
            "bank_balance": round(float(r.get("total_balance") or 0) * 3600),
            "expiring_hours": 0,
            "days_to_expire": NO_EXPIRY_DAYS,
        }
        for r in rows
    ]


# -------------------------------------------------------------
# PAGE
# -------------------------------------------------------------
def render_dashboard(df_emp: pd.DataFrame):
    st.title("Dashboard Operacional")

    if df_emp is None:
        df_emp = pd.DataFrame()

    operational = operational_only(df_emp.to_dict("records")) if not df_emp.empty else []
    balances = _balances(df_emp)
    totals = bank_totals(balances)

    # --------------------------------------------------------
    # KPI
    # --------------------------------------------------------
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Headcount operacional", len(operational))
    k2.metric("Horas positivas", format_balance(totals["positive"]))
    k3.metric("Horas negativas", format_balance(totals["negative"]))
    k4.metric(f"A vencer (< {EXPIRY_ALERT_DAYS} dias)", format_balance(totals["expiring"]),
              delta=f"{totals['expiring_count']} colaboradores", delta_color="off")

    with st.expander("💡 Dica da IA para o saldo do banco de horas"):
        if st.button("Gerar dica", key="kpi_tip"):
            trend = f"{totals['critical_count']} colaboradores em nível crítico"
            st.write(get_kpi_tip("Saldo total do banco de horas", format_balance(totals["total"]), trend))

    st.markdown("---")

    # --------------------------------------------------------
    # CHARTS
    # --------------------------------------------------------
    col1, col2 = st.columns(2)

    with col1:
        fig = chart_employees_per_cluster(df_emp)
        if fig:
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("Nenhum colaborador cadastrado.")

    with col2:
        fig = chart_balance_by_cluster(balances)
        if fig:
            st.plotly_chart(fig, use_container_width=True)
            if st.button("🔍 Análise da IA", key="deep_dive"):
                data = balance_by_cluster(balances).to_dict("records")
                st.info(get_chart_deep_dive(data, "mês atual"))
        else:
            st.info("Importe o banco de horas para ver o saldo por área.")

    st.markdown("---")

    # --------------------------------------------------------
    # RISK + ALERTS
    # --------------------------------------------------------
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("⚠️ Colaboradores em risco")
        risks = risk_employees(balances)
        if not risks:
            st.success("Nenhum saldo negativo.")
        for r in risks:
            show = st.error if r["color"] == "danger" else st.warning
            show(f"**{r['name']}** ({r['cluster']}) – {r['indicator']}")

    with col2:
        st.subheader("🤖 Alertas inteligentes")
        if st.button("Gerar alertas", key="smart_alerts"):
            scenario = (
                f"{len(operational)} colaboradores operacionais; "
                f"saldo total {format_balance(totals['total'])}; "
                f"{totals['critical_count']} em nível crítico; "
                f"{totals['expiring_count']} com horas a vencer."
            )
            show_insights(get_smart_alerts(scenario))
