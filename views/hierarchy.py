# views/hierarchy.py

"""
Page: Hierarquia
Reporting lines (hierarchy_connections), headcount per manager
and AI staffing suggestions.
"""

import pandas as pd
import streamlit as st

from settings.constants import CONNECTION_TYPES, HIERARCHY_LEVELS
from utils.ai import get_headcount_suggestions
from utils.errors import GestaoError
from utils.repository import (
    assign_manager,
    create_connection,
    delete_connection,
    get_all_connections,
    headcount_by_manager,
    update_connection_type,
    update_employee_position,
)
from utils.roles import hierarchy_level_for_role
from views.charts import chart_headcount
from views.common import employee_names, show_insights

CONNECTION_LABELS = {
    "reports_to": "Reporta a",
    "collaborates_with": "Colabora com",
}


def render_hierarchy(df_emp: pd.DataFrame):
    st.title("Hierarquia")

    if df_emp is None or df_emp.empty:
        st.info("Nenhum colaborador cadastrado.")
        return

    names = employee_names(df_emp)
    employees = df_emp.to_dict("records")

    try:
        connections = get_all_connections()
    except GestaoError as e:
        st.error(f"❌ {e}")
        connections = []

    tab_tree, tab_links, tab_headcount = st.tabs(["Estrutura", "Conexões", "Headcount"])

    # --------------------------------------------------------
    # STRUCTURE BY LEVEL
    # --------------------------------------------------------
    with tab_tree:
        if "hierarchy_level" in df_emp.columns:
            levels = df_emp["hierarchy_level"].fillna(df_emp["role"].map(hierarchy_level_for_role))
        else:
            levels = df_emp["role"].map(hierarchy_level_for_role)

        for level in HIERARCHY_LEVELS:
            members = df_emp[levels == level]
            if members.empty:
                continue
            st.markdown(f"#### Nível `{level}` ({len(members)})")
            cols = [c for c in ["full_name", "role", "cluster", "manager_id"] if c in members.columns]
            view = members[cols].copy()
            if "manager_id" in view.columns:
                view["manager_id"] = view["manager_id"].map(lambda i: names.get(i, "—"))
            st.dataframe(view.rename(columns={"manager_id": "gestor"}), use_container_width=True, hide_index=True)

        with st.expander("📍 Posição no organograma"):
            emp_id = st.selectbox("Colaborador", list(names), format_func=names.get, key="pos_emp")
            c1, c2 = st.columns(2)
            x = c1.number_input("X", value=0.0, step=10.0)
            y = c2.number_input("Y", value=0.0, step=10.0)
            if st.button("Salvar posição"):
                try:
                    update_employee_position(emp_id, x, y)
                    st.success("Posição salva.")
                except GestaoError as e:
                    st.error(f"❌ {e}")

    # --------------------------------------------------------
    # CONNECTIONS CRUD
    # --------------------------------------------------------
    with tab_links:
        if connections:
            df_conn = pd.DataFrame(connections)
            df_conn["origem"] = df_conn["source_employee_id"].map(lambda i: names.get(i, i))
            df_conn["destino"] = df_conn["target_employee_id"].map(lambda i: names.get(i, i))
            df_conn["tipo"] = df_conn["connection_type"].map(lambda t: CONNECTION_LABELS.get(t, t))
            st.dataframe(df_conn[["origem", "tipo", "destino"]], use_container_width=True, hide_index=True)
        else:
            st.info("Nenhuma conexão cadastrada.")

        st.markdown("### Nova conexão")
        with st.form("new_connection"):
            c1, c2, c3 = st.columns(3)
            source = c1.selectbox("Gestor / origem", list(names), format_func=names.get)
            ctype = c2.selectbox("Tipo", CONNECTION_TYPES, format_func=CONNECTION_LABELS.get)
            target = c3.selectbox("Colaborador / destino", list(names), format_func=names.get)
            submitted = st.form_submit_button("Conectar")

        if submitted:
            try:
                if ctype == "reports_to":
                    assign_manager(source, target)
                else:
                    create_connection(source, target, ctype)
                st.success("Conexão criada.")
                st.rerun()
            except (GestaoError, ValueError) as e:
                st.error(f"❌ {e}")

        if connections:
            st.markdown("### Alterar / remover")
            labels = {
                c["id"]: f"{names.get(c['source_employee_id'], '?')} → {names.get(c['target_employee_id'], '?')}"
                for c in connections
            }
            conn_id = st.selectbox("Conexão", list(labels), format_func=labels.get)
            c1, c2 = st.columns(2)
            new_type = c1.selectbox("Novo tipo", CONNECTION_TYPES, format_func=CONNECTION_LABELS.get, key="new_type")
            if c1.button("Atualizar tipo"):
                try:
                    update_connection_type(conn_id, new_type)
                    st.rerun()
                except (GestaoError, ValueError) as e:
                    st.error(f"❌ {e}")
            if c2.button("🗑️ Remover conexão"):
                try:
                    delete_connection(conn_id)
                    st.rerun()
                except GestaoError as e:
                    st.error(f"❌ {e}")

    # --------------------------------------------------------
    # HEADCOUNT + AI
    # --------------------------------------------------------
    with tab_headcount:
        headcount = headcount_by_manager(employees)
        fig = chart_headcount(headcount)
        if fig:
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("Nenhum gestor cadastrado.")

        if headcount and st.button("🤖 Sugestões de dimensionamento"):
            with st.spinner("Analisando..."):
                show_insights(get_headcount_suggestions(headcount))
