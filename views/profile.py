# views/profile.py

"""
Page: Perfil
Collaborator card with tenure, contact data and hours bank balance.
"""

import pandas as pd
import streamlit as st

from utils.calculations import tenure_label
from utils.hours_bank import format_balance
from utils.repository import get_employee_detailed_balance
from views.common import employee_names

STATUS_LABELS = {"active": "Ativo", "inactive": "Inativo", "on_leave": "Afastado"}


def render_profile(df_emp: pd.DataFrame, profile=None):
    st.title("Perfil do Colaborador")

    if df_emp is None or df_emp.empty:
        st.info("Nenhum colaborador cadastrado.")
        return

    names = employee_names(df_emp)
    ids = list(names)
    own_id = (profile or {}).get("id")
    emp_id = st.selectbox(
        "Colaborador", ids, index=ids.index(own_id) if own_id in ids else 0, format_func=names.get
    )
    selected = df_emp[df_emp["id"] == emp_id]
    emp = selected.astype(object).where(pd.notnull(selected), None).iloc[0].to_dict()

    st.subheader(emp.get("full_name", ""))
    st.caption(f"{emp.get('role') or '—'} · {STATUS_LABELS.get(emp.get('status'), emp.get('status') or '—')}")

    c1, c2, c3 = st.columns(3)
    c1.metric("Tempo de casa", tenure_label(emp.get("admission_date")))

    balance = get_employee_detailed_balance(emp_id)
    hours = float((balance or {}).get("total_balance") or 0)
    c2.metric("Banco de horas", format_balance(hours * 3600))
    c3.metric("Gestor", names.get(emp.get("manager_id"), "—"))

    st.markdown("---")
    c1, c2 = st.columns(2)
    c1.markdown(f"**Matrícula:** {emp.get('employee_number') or '—'}")
    c1.markdown(f"**Área:** {emp.get('cluster') or 'Geral'}")
    c1.markdown(f"**Loja:** {emp.get('store') or '—'}")
    c1.markdown(f"**Turno:** {emp.get('shift') or '—'}")
    c2.markdown(f"**E-mail:** {emp.get('email') or '—'}")
    c2.markdown(f"**Contato:** {emp.get('phone') or 'Não informado'}")
    address = ", ".join(str(p) for p in (emp.get("address"), emp.get("city"), emp.get("uf")) if p)
    c2.markdown(f"**Endereço:** {address or 'Não informado'}")
    admission = pd.to_datetime(emp.get("admission_date"), errors="coerce")
    c2.markdown(f"**Admissão:** {admission:%d/%m/%Y}" if not pd.isna(admission) else "**Admissão:** —")
