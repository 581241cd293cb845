# views/hours_bank.py

"""
Page: Banco de Horas
HR extract import (per-collaborator balances), worked-vs-expected import
into hours_bank, and transaction approval.
"""

import io

import pandas as pd
import streamlit as st

from settings.constants import EXPIRY_ALERT_DAYS, NO_EXPIRY_DAYS
from utils.errors import GestaoError
from utils.hours_bank import (
    aggregate_bank_rows,
    balance_status,
    bank_totals,
    format_balance,
    import_rows_from_frame,
    read_bank_file,
)
from utils.repository import (
    approve_hours_bank_transaction,
    delete_hours_bank_transaction,
    get_all_hours_bank_transactions,
    import_hours_bank,
    reject_hours_bank_transaction,
)
from views.common import download_section, employee_names

STATUS_ICONS = {"critical": "🔴", "warning": "🟡", "healthy": "🟢"}


# -------------------------------------------------------------
# PAGE DISPATCHER
# -------------------------------------------------------------
def render_hours_bank(df_emp: pd.DataFrame, action: str, profile=None):
    st.title("Banco de Horas")

    if action == "Saldo por colaborador":
        _page_balances()

    elif action == "Importar lançamentos":
        _page_import_transactions()

    elif action == "Aprovações":
        _page_transactions(df_emp, profile)


# -------------------------------------------------------------
# HR EXTRACT -> BALANCES
# -------------------------------------------------------------
def _page_balances():
    file = st.file_uploader("Extrato do banco de horas (.xlsx, .xls ou .csv)", type=["xlsx", "xls", "csv"])

    if file and st.button("Processar arquivo"):
        try:
            rows = read_bank_file(file.name, file.getvalue())
            st.session_state["bank_import"] = aggregate_bank_rows(rows)
        except GestaoError as e:
            st.error(f"❌ {e}")
            return

    result = st.session_state.get("bank_import")
    if not result:
        st.info("Carregue o extrato do banco de horas para ver os saldos.")
        return

    totals = bank_totals(result.balances)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Colaboradores", len(result.balances))
    c2.metric("Saldo total", format_balance(totals["total"]))
    c3.metric(f"A vencer (< {EXPIRY_ALERT_DAYS} dias)", format_balance(totals["expiring"]))
    c4.metric("Críticos", totals["critical_count"])
    st.caption(f"{result.processed} linhas processadas, {result.skipped} ignoradas.")

    df = pd.DataFrame([
        {
            "": STATUS_ICONS[balance_status(b["bank_balance"])],
            "Matrícula": b["id"],
            "Nome": b["name"],
            "Gestor": b["coordinator"],
            "Saldo": format_balance(b["bank_balance"]),
            "A vencer": format_balance(b["expiring_hours"]) if b["expiring_hours"] else "",
            "Dias p/ vencer": b["days_to_expire"] if b["days_to_expire"] < NO_EXPIRY_DAYS else "",
        }
        for b in sorted(result.balances, key=lambda b: b["bank_balance"])
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)
    download_section(df, "saldos_banco_horas", key="bank")

    with st.expander("Extrato bruto"):
        st.dataframe(pd.DataFrame(result.parsed_rows), use_container_width=True)


# -------------------------------------------------------------
# WORKED vs EXPECTED -> TRANSACTIONS
# -------------------------------------------------------------
def _page_import_transactions():
    st.write(
        "Planilha com as colunas: Matrícula/E-mail, Data, Horas Trabalhadas, "
        "Horas Previstas (opcionais: Nome, Tipo, Observações)."
    )
    file = st.file_uploader("Arquivo (.xlsx ou .csv)", type=["xlsx", "csv"], key="tx_file")
    if not file:
        return

    try:
        if file.name.lower().endswith(".csv"):
            df = pd.read_csv(io.BytesIO(file.getvalue()), sep=None, engine="python", dtype=str)
        else:
            df = pd.read_excel(io.BytesIO(file.getvalue()))
        rows = import_rows_from_frame(df)
    except (GestaoError, ValueError) as e:
        st.error(f"❌ {e}")
        return

    st.dataframe(pd.DataFrame(rows).head(50), use_container_width=True, hide_index=True)

    if st.button(f"Importar {len(rows)} linhas"):
        with st.spinner("Importando..."):
            result = import_hours_bank(rows, file.name)
        st.success(f"{result['success']} lançamentos criados (lote {result['batch_id'][:8]}).")
        if result["errors"]:
            st.warning(f"{len(result['errors'])} linhas com erro:")
            st.dataframe(
                pd.DataFrame(result["errors"]).rename(columns={"row": "Linha", "error": "Erro"}),
                hide_index=True,
            )


# -------------------------------------------------------------
# APPROVALS
# -------------------------------------------------------------
def _page_transactions(df_emp, profile):
    try:
        transactions = get_all_hours_bank_transactions()
    except GestaoError as e:
        st.error(f"❌ {e}")
        return

    if not transactions:
        st.info("Nenhum lançamento registrado.")
        return

    names = employee_names(df_emp) if df_emp is not None else {}
    df = pd.DataFrame(transactions)
    df["colaborador"] = df["employee_id"].map(lambda i: names.get(i, i))

    status = st.selectbox("Status", ["pending", "approved", "rejected"])
    view = df[df["status"] == status]
    cols = [c for c in ["colaborador", "transaction_date", "transaction_type", "hours",
                        "balance_after", "description", "source_file"] if c in view.columns]
    st.dataframe(view[cols], use_container_width=True, hide_index=True)

    if view.empty:
        return

    labels = {
        r["id"]: f"{r['colaborador']} · {r.get('transaction_date')} · {r.get('transaction_type')} {r.get('hours')}h"
        for r in view.to_dict("records")
    }
    tx_id = st.selectbox("Lançamento", list(labels), format_func=labels.get)
    approver = (profile or {}).get("id")

    c1, c2, c3 = st.columns(3)
    try:
        if c1.button("✅ Aprovar"):
            approve_hours_bank_transaction(tx_id, approver)
            st.rerun()
        if c2.button("❌ Rejeitar"):
            reject_hours_bank_transaction(tx_id, approver)
            st.rerun()
        if c3.button("🗑️ Excluir"):
            delete_hours_bank_transaction(tx_id)
            st.rerun()
    except GestaoError as e:
        st.error(f"❌ {e}")
