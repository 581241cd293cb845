# views/certificates.py

"""
Page: Atestados
Upload of certificate files to Supabase Storage and the certificates list.
"""

from datetime import date

import pandas as pd
import streamlit as st

from settings.constants import CERTIFICATE_STATUSES
from utils.errors import GestaoError
from utils.repository import (
    delete_certificate,
    get_all_certificates,
    save_certificate,
    update_certificate_status,
    upload_certificate_file,
)
from views.charts import chart_status_counts
from views.common import download_section, employee_names

STATUS_LABELS = {"valid": "Válido", "expired": "Vencido", "pending": "Pendente"}


def render_certificates(df_emp: pd.DataFrame):
    st.title("Atestados")

    if df_emp is None or df_emp.empty:
        st.info("Nenhum colaborador cadastrado.")
        return

    names = employee_names(df_emp)

    # --------------------------------------------------------
    # UPLOAD
    # --------------------------------------------------------
    with st.expander("➕ Novo atestado", expanded=False):
        with st.form("new_certificate", clear_on_submit=True):
            emp_id = st.selectbox("Colaborador", list(names), format_func=names.get)
            c1, c2 = st.columns(2)
            cert_name = c1.text_input("Descrição *")
            issuer = c2.text_input("Emissor (médico / clínica)")
            issue_date = c1.date_input("Data de emissão", value=date.today(), format="DD/MM/YYYY")
            expiry_date = c2.date_input("Válido até", value=date.today(), format="DD/MM/YYYY")
            file = st.file_uploader("Arquivo (PDF ou imagem)", type=["pdf", "png", "jpg", "jpeg"])
            submitted = st.form_submit_button("Enviar")

        if submitted:
            if not cert_name.strip():
                st.error("Descrição é obrigatória.")
            elif expiry_date < issue_date:
                st.error("A validade deve ser posterior à emissão.")
            else:
                try:
                    record = {
                        "employee_id": emp_id,
                        "certificate_name": cert_name.strip(),
                        "issuer": issuer or None,
                        "issue_date": issue_date.isoformat(),
                        "expiry_date": expiry_date.isoformat(),
                        "status": "expired" if expiry_date < date.today() else "valid",
                    }
                    if file:
                        record["file_url"] = upload_certificate_file(
                            emp_id, file.name, file.getvalue(), file.type
                        )
                        record["file_name"] = file.name
                    save_certificate({k: v for k, v in record.items() if v is not None})
                    st.success("Atestado registrado!")
                except GestaoError as e:
                    st.error(f"❌ {e}")

    # --------------------------------------------------------
    # LIST
    # --------------------------------------------------------
    try:
        certificates = get_all_certificates()
    except GestaoError as e:
        st.error(f"❌ {e}")
        return

    if not certificates:
        st.info("Nenhum atestado registrado.")
        return

    df = pd.DataFrame(certificates)
    df["colaborador"] = df["employee_id"].map(lambda i: names.get(i, i))

    fig = chart_status_counts(df, "Atestados por status")
    if fig:
        st.plotly_chart(fig, use_container_width=True)

    cols = [c for c in ["colaborador", "certificate_name", "issuer", "issue_date",
                        "expiry_date", "status", "file_url"] if c in df.columns]
    st.dataframe(
        df[cols],
        use_container_width=True,
        hide_index=True,
        column_config={"file_url": st.column_config.LinkColumn("Arquivo")},
    )
    download_section(df[cols], "atestados", key="cert")

    # --------------------------------------------------------
    # STATUS / DELETE
    # --------------------------------------------------------
    labels = {r["id"]: f"{r['colaborador']} · {r.get('certificate_name', '')}" for r in df.to_dict("records")}
    cert_id = st.selectbox("Atestado", list(labels), format_func=labels.get)
    c1, c2, c3 = st.columns(3)
    new_status = c1.selectbox("Status", CERTIFICATE_STATUSES, format_func=STATUS_LABELS.get)
    try:
        if c2.button("Atualizar status"):
            update_certificate_status(cert_id, new_status)
            st.rerun()
        if c3.button("🗑️ Excluir"):
            delete_certificate(cert_id)
            st.rerun()
    except GestaoError as e:
        st.error(f"❌ {e}")
