# app.py

"""
Main application entry point.
Contains:
- page layout config and logging setup
- authentication gate (login + forced password change)
- sidebar router
- page dispatch to the views/ modules
"""

import logging

import streamlit as st

from settings.constants import APP_TITLE, APP_VERSION, LOG_LEVEL, TABLE_EMPLOYEES
from utils.auth import login, logout, password_strength, update_password, validate_password
from utils.db import fetch_table
from utils.errors import GestaoError
from utils.repository import get_employee_by_user_id, update_employee
from utils.roles import is_operational_role

from views.certificates import render_certificates
from views.dashboard import render_dashboard
from views.employees import render_employees
from views.feedbacks import render_feedbacks
from views.hierarchy import render_hierarchy
from views.hours_bank import render_hours_bank
from views.insights import render_insights
from views.portal import render_portal
from views.profile import render_profile
from views.schedules import render_schedules
from views.vacations import render_vacations

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# INITIAL STREAMLIT CONFIG
# ------------------------------------------------------------
st.set_page_config(
    page_title=APP_TITLE,
    layout="wide",
    initial_sidebar_state="expanded"
)

MANAGEMENT_SECTIONS = [
    "Dashboard",
    "Hierarquia",
    "Colaboradores",
    "Escalas",
    "Férias",
    "Banco de Horas",
    "Feedbacks",
    "Atestados",
    "Perfil",
    "Meu Portal",
    "IA Command Center",
]
OPERATIONAL_SECTIONS = ["Meu Portal", "Perfil"]

SUBMENUS = {
    "Colaboradores": ["Lista & download", "Cadastrar", "Importar CSV", "Editar / Excluir"],
    "Férias": ["Planejamento", "Registrar", "Aprovar / Excluir"],
    "Banco de Horas": ["Saldo por colaborador", "Importar lançamentos", "Aprovações"],
    "Feedbacks": ["Novo feedback", "Histórico"],
}


# ------------------------------------------------------------
# PROFILE
# ------------------------------------------------------------
def load_profile():
    """Employee row linked to the signed-in user, cached in the session."""
    if "user_profile" not in st.session_state:
        try:
            st.session_state["user_profile"] = get_employee_by_user_id(st.session_state["user_id"])
        except GestaoError as e:
            logger.error("Profile lookup failed: %s", e)
            st.error("Não foi possível carregar seu perfil. Tente novamente.")
            return None
    return st.session_state["user_profile"]


def password_change_gate(profile):
    """Blocks the app until a first-access password is replaced."""
    st.title("Alterar senha")
    st.info("Por segurança, defina uma nova senha para continuar.")

    with st.form("change_password"):
        new_password = st.text_input("Nova senha", type="password")
        confirm = st.text_input("Confirmar senha", type="password")
        submitted = st.form_submit_button("Salvar")

    if new_password:
        score, label = password_strength(new_password)
        st.progress(score / 5, text=f"Força da senha: {label}")

    if submitted:
        error = validate_password(new_password)
        if not error and new_password != confirm:
            error = "As senhas não coincidem"
        if error:
            st.error(error)
        else:
            try:
                update_password(new_password)
                update_employee(profile["id"], {"must_change_password": False})
                st.session_state["user_profile"] = {**profile, "must_change_password": False}
                st.success("Senha alterada com sucesso!")
                st.rerun()
            except GestaoError as e:
                st.error(f"❌ {e}")

    st.stop()


# ------------------------------------------------------------
# MAIN ROUTER
# ------------------------------------------------------------
def main_app():
    profile = load_profile()
    if profile and profile.get("must_change_password"):
        password_change_gate(profile)

    # Sidebar
    st.sidebar.title(APP_TITLE)
    st.sidebar.write(f"👤 {(profile or {}).get('full_name') or st.session_state.get('user_email', '')}")
    if profile:
        st.sidebar.caption(profile.get("role") or "")

    if st.sidebar.button("Sair"):
        logout()
        st.rerun()

    operational = bool(profile) and is_operational_role(profile.get("role"))
    sections = OPERATIONAL_SECTIONS if operational else MANAGEMENT_SECTIONS
    section = st.sidebar.radio("Seção", sections, index=0)

    action = None
    if section in SUBMENUS:
        st.sidebar.markdown(f"### {section}")
        action = st.sidebar.radio("Ação", SUBMENUS[section], index=0)

    st.sidebar.caption(f"v{APP_VERSION}")

    # --------------------------------------------------------
    # DATA FETCH (only once per run)
    # --------------------------------------------------------
    df_emp = fetch_table(TABLE_EMPLOYEES, order="full_name")

    # --------------------------------------------------------
    # PAGE DISPATCH
    # --------------------------------------------------------
    if section == "Dashboard":
        render_dashboard(df_emp)

    elif section == "Hierarquia":
        render_hierarchy(df_emp)

    elif section == "Colaboradores":
        render_employees(df_emp, action)

    elif section == "Escalas":
        render_schedules(df_emp)

    elif section == "Férias":
        render_vacations(df_emp, action)

    elif section == "Banco de Horas":
        render_hours_bank(df_emp, action, profile)

    elif section == "Feedbacks":
        render_feedbacks(df_emp, action, profile)

    elif section == "Atestados":
        render_certificates(df_emp)

    elif section == "Perfil":
        if operational:
            df_emp = df_emp[df_emp["id"] == profile["id"]] if not df_emp.empty else df_emp
        render_profile(df_emp, profile)

    elif section == "Meu Portal":
        render_portal(profile)

    elif section == "IA Command Center":
        render_insights()


# ------------------------------------------------------------
# AUTH GATE
# ------------------------------------------------------------
def main():
    # User not logged in → show login form
    if "access_token" not in st.session_state:
        st.title(f"{APP_TITLE} – Entrar")

        with st.form("login_form"):
            email = st.text_input("E-mail")
            password = st.text_input("Senha", type="password")
            submitted = st.form_submit_button("Entrar")

            if submitted:
                if login(email, password):
                    st.rerun()

        st.stop()

    # User authenticated → show app
    else:
        main_app()


# ------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------
if __name__ == "__main__":
    main()
