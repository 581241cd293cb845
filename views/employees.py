# views/employees.py

"""
Page: Colaboradores
List / download, single registration, CSV-XLSX import and edit / delete
on the `employees` table.
"""

from datetime import date

import pandas as pd
import streamlit as st

from settings.constants import AREAS, VALID_ROLES
from utils.csv_import import (
    SYSTEM_FIELDS,
    auto_map_columns,
    generate_csv_template,
    is_valid_email,
    is_valid_phone,
    issues_frame,
    missing_required_mappings,
    read_upload,
    to_employee_record,
    validate_rows,
)
from utils.errors import GestaoError
from utils.repository import (
    create_employee,
    create_employees_bulk,
    delete_employee,
    manager_options,
    update_employee,
)
from utils.roles import hierarchy_level_for_role
from views.common import download_section

LIST_COLUMNS = ["full_name", "role", "cluster", "store", "email", "phone", "admission_date", "status"]
UNMAPPED = "— não mapear —"


# -------------------------------------------------------------
# PAGE DISPATCHER
# -------------------------------------------------------------
def render_employees(df_emp: pd.DataFrame, action: str):
    st.title("Colaboradores")

    if df_emp is None:
        df_emp = pd.DataFrame()

    if action == "Lista & download":
        _page_list(df_emp)

    elif action == "Cadastrar":
        _page_add(df_emp)

    elif action == "Importar CSV":
        _page_import(df_emp)

    elif action == "Editar / Excluir":
        _page_edit_delete(df_emp)


# -------------------------------------------------------------
# LIST + DOWNLOAD
# -------------------------------------------------------------
def _page_list(df: pd.DataFrame):
    st.subheader("Quadro de colaboradores")

    if df.empty:
        st.info("Nenhum colaborador cadastrado.")
        return

    query = st.text_input("🔎 Buscar por nome ou e-mail")
    view = df[[c for c in LIST_COLUMNS if c in df.columns]]
    if query:
        q = query.lower()
        mask = view["full_name"].fillna("").str.lower().str.contains(q, regex=False)
        if "email" in view.columns:
            mask |= view["email"].fillna("").str.lower().str.contains(q, regex=False)
        view = view[mask]

    st.dataframe(view, use_container_width=True, hide_index=True)

    st.subheader("Baixar tabela")
    download_section(view, "colaboradores", key="emp")


# -------------------------------------------------------------
# SINGLE REGISTRATION
# -------------------------------------------------------------
def _form_errors(full_name, email, phone) -> list:
    errors = []
    if not full_name.strip():
        errors.append("Nome é obrigatório.")
    if email and not is_valid_email(email):
        errors.append("E-mail inválido.")
    if phone and not is_valid_phone(phone):
        errors.append("Telefone inválido. Use (XX) XXXXX-XXXX.")
    return errors


def _page_add(df: pd.DataFrame):
    st.subheader("Cadastrar novo colaborador")

    managers = manager_options(df.to_dict("records")) if not df.empty else []
    manager_labels = {m["id"]: m["name"] for m in managers}

    with st.form("add_employee"):
        c1, c2 = st.columns(2)
        full_name = c1.text_input("Nome completo *")
        role = c2.selectbox("Cargo *", VALID_ROLES)
        email = c1.text_input("E-mail")
        phone = c2.text_input("Telefone")
        cluster = c1.selectbox("Área", [""] + AREAS)
        store = c2.text_input("Loja")
        employee_number = c1.text_input("Matrícula")
        admission = c2.date_input("Data de admissão", value=date.today(), format="DD/MM/YYYY")
        manager_id = st.selectbox(
            "Gestor", [None] + list(manager_labels), format_func=lambda i: manager_labels.get(i, "—")
        )

        submitted = st.form_submit_button("Cadastrar")

    if not submitted:
        return

    errors = _form_errors(full_name, email, phone)
    if errors:
        for e in errors:
            st.error(e)
        return

    payload = {
        "full_name": full_name.strip(),
        "role": role,
        "email": email or None,
        "phone": phone or None,
        "cluster": cluster or None,
        "store": store or None,
        "employee_number": employee_number or None,
        "admission_date": admission.isoformat(),
        "manager_id": manager_id,
        "hierarchy_level": hierarchy_level_for_role(role),
        "status": "active",
    }

    try:
        create_employee({k: v for k, v in payload.items() if v is not None})
        st.success("Colaborador cadastrado com sucesso!")
    except GestaoError as e:
        st.error(f"❌ {e}")


# -------------------------------------------------------------
# CSV / XLSX IMPORT
# -------------------------------------------------------------
def _page_import(df: pd.DataFrame):
    st.subheader("Importar colaboradores")

    st.download_button(
        "📄 Baixar modelo CSV",
        data=generate_csv_template().encode("utf-8-sig"),
        file_name="modelo_colaboradores.csv",
        mime="text/csv",
    )

    file = st.file_uploader("Carregar arquivo (.csv ou .xlsx)", type=["csv", "xlsx"])
    if not file:
        return

    try:
        parsed = read_upload(file.name, file.getvalue())
    except GestaoError as e:
        st.error(f"❌ {e}")
        return

    for err in parsed.errors:
        st.warning(err)

    st.write(f"📄 {len(parsed.rows)} linhas encontradas.")

    # --------------------------------------------------------
    # COLUMN MAPPING
    # --------------------------------------------------------
    st.markdown("### Mapeamento de colunas")
    suggested = auto_map_columns(parsed.headers)
    options = [UNMAPPED] + parsed.headers
    mapping = {}
    cols = st.columns(3)
    for i, sf in enumerate(SYSTEM_FIELDS):
        default = suggested.get(sf.key)
        choice = cols[i % 3].selectbox(
            sf.label,
            options,
            index=options.index(default) if default in options else 0,
            key=f"map_{sf.key}",
        )
        if choice != UNMAPPED:
            mapping[sf.key] = choice

    missing = missing_required_mappings(mapping)
    if missing:
        st.warning(f"Mapeie os campos obrigatórios: {', '.join(missing)}")
        return

    # --------------------------------------------------------
    # VALIDATION PREVIEW
    # --------------------------------------------------------
    managers = manager_options(df.to_dict("records")) if not df.empty else []
    valid, issues = validate_rows(parsed.rows, mapping, [m["name"] for m in managers])

    c1, c2 = st.columns(2)
    c1.metric("Linhas válidas", len(valid))
    c2.metric("Problemas", len(issues))

    if valid:
        st.write("Prévia:")
        st.dataframe(pd.DataFrame(valid).head(20), use_container_width=True, hide_index=True)

    if issues:
        st.write("Linhas com erro (não serão importadas):")
        st.dataframe(issues_frame(issues), use_container_width=True, hide_index=True)

    if valid and st.button(f"Importar {len(valid)} colaboradores"):
        records = [to_employee_record(v, managers) for v in valid]
        try:
            created = create_employees_bulk(records)
            st.success(f"Importação concluída! {len(created)} colaboradores cadastrados.")
        except GestaoError as e:
            st.error(f"❌ {e}")


# -------------------------------------------------------------
# EDIT / DELETE
# -------------------------------------------------------------
def _page_edit_delete(df: pd.DataFrame):
    st.subheader("Editar ou excluir colaborador")

    if df.empty:
        st.info("Nenhum colaborador cadastrado.")
        return

    names = dict(zip(df["id"], df["full_name"]))
    emp_id = st.selectbox("Colaborador", list(names), format_func=names.get)
    selected = df[df["id"] == emp_id]
    row = selected.astype(object).where(pd.notnull(selected), None).iloc[0].to_dict()

    managers = [m for m in manager_options(df.to_dict("records")) if m["id"] != emp_id]
    manager_labels = {m["id"]: m["name"] for m in managers}
    current_manager = row.get("manager_id") if row.get("manager_id") in manager_labels else None

    with st.form("edit_employee"):
        c1, c2 = st.columns(2)
        full_name = c1.text_input("Nome completo", value=row.get("full_name") or "")
        role_options = VALID_ROLES if row.get("role") in VALID_ROLES else [row.get("role") or ""] + VALID_ROLES
        role = c2.selectbox("Cargo", role_options, index=role_options.index(row.get("role") or role_options[0]))
        email = c1.text_input("E-mail", value=row.get("email") or "")
        phone = c2.text_input("Telefone", value=row.get("phone") or "")
        cluster = c1.text_input("Área", value=row.get("cluster") or "")
        store = c2.text_input("Loja", value=row.get("store") or "")
        statuses = ["active", "inactive", "on_leave"]
        status = c1.selectbox(
            "Situação", statuses,
            index=statuses.index(row.get("status")) if row.get("status") in statuses else 0,
        )
        manager_keys = [None] + list(manager_labels)
        manager_id = c2.selectbox(
            "Gestor", manager_keys,
            index=manager_keys.index(current_manager),
            format_func=lambda i: manager_labels.get(i, "—"),
        )

        c_save, c_del = st.columns(2)
        save = c_save.form_submit_button("💾 Salvar")
        delete = c_del.form_submit_button("🗑️ Excluir")

    if save:
        errors = _form_errors(full_name, email, phone)
        if errors:
            for e in errors:
                st.error(e)
            return
        try:
            update_employee(emp_id, {
                "full_name": full_name.strip(),
                "role": role,
                "email": email or None,
                "phone": phone or None,
                "cluster": cluster or None,
                "store": store or None,
                "status": status,
                "manager_id": manager_id,
                "hierarchy_level": hierarchy_level_for_role(role),
            })
            st.success("Colaborador atualizado!")
            st.rerun()
        except GestaoError as e:
            st.error(f"❌ {e}")

    if delete:
        try:
            delete_employee(emp_id)
            st.success("Colaborador excluído.")
            st.rerun()
        except GestaoError as e:
            st.error(f"❌ {e}")
