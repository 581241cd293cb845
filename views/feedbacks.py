# views/feedbacks.py

"""
Page: Feedbacks
Monthly feedback form with AI writing help, e-mail preview / mailto link
and history.
"""

import pandas as pd
import streamlit as st

from settings.constants import FEEDBACK_STATUSES
from utils.ai import generate_feedback_email, improve_feedback_text
from utils.errors import AIUnavailableError, GestaoError
from utils.feedbacks import feedback_email_body, feedback_record, mailto_link
from utils.repository import delete_feedback, get_all_feedbacks, save_feedback
from views.charts import chart_status_counts
from views.common import employee_names, month_picker


def _improve(field: str):
    try:
        st.session_state[f"fb_{field}"] = improve_feedback_text(st.session_state.get(f"fb_{field}", ""), field)
        st.toast("✨ Texto melhorado com IA!")
    except AIUnavailableError as e:
        st.session_state["fb_ai_error"] = str(e)


def _parse_pdi(text: str) -> list:
    """One action per line, optional 'ação | prazo'."""
    items = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        action, _, deadline = line.partition("|")
        items.append({"action": action.strip(), "deadline": deadline.strip()})
    return items


# -------------------------------------------------------------
# PAGE DISPATCHER
# -------------------------------------------------------------
def render_feedbacks(df_emp: pd.DataFrame, action: str, profile=None):
    st.title("Feedbacks")

    if df_emp is None or df_emp.empty:
        st.info("Nenhum colaborador cadastrado.")
        return

    if action == "Novo feedback":
        _page_form(df_emp, profile)

    elif action == "Histórico":
        _page_history(df_emp)


# -------------------------------------------------------------
# FORM
# -------------------------------------------------------------
def _page_form(df_emp, profile):
    names = employee_names(df_emp)
    emails = dict(zip(df_emp["id"], df_emp["email"])) if "email" in df_emp.columns else {}

    emp_id = st.selectbox("Colaborador", list(names), format_func=names.get)
    year, month = month_picker("fb")

    st.text_area("Pontos fortes", key="fb_strengths", height=120)
    st.button("✨ Melhorar com IA", key="improve_strengths", on_click=_improve, args=("strengths",))
    st.text_area("Pontos de melhoria", key="fb_improvements", height=120)
    st.button("✨ Melhorar com IA", key="improve_improvements", on_click=_improve, args=("improvements",))

    if st.session_state.get("fb_ai_error"):
        st.warning(st.session_state.pop("fb_ai_error"))

    goals_text = st.text_area("Metas acordadas (uma por linha)", key="fb_goals")
    pdi_text = st.text_area("PDI (uma ação por linha: ação | prazo)", key="fb_pdi")
    rating = st.slider("Avaliação geral", 1, 5, 3)

    strengths = st.session_state.get("fb_strengths", "")
    improvements = st.session_state.get("fb_improvements", "")
    goals = [g.strip() for g in goals_text.splitlines() if g.strip()]
    pdi = _parse_pdi(pdi_text)
    name = names.get(emp_id, "")

    # --------------------------------------------------------
    # E-MAIL
    # --------------------------------------------------------
    st.markdown("### E-mail")
    if st.button("🤖 Gerar prévia do e-mail com IA"):
        try:
            st.session_state["fb_email"] = generate_feedback_email(name, strengths, improvements, goals, pdi)
        except AIUnavailableError as e:
            st.warning(str(e))

    body = st.session_state.get("fb_email") or feedback_email_body(name, strengths, improvements, goals, pdi)
    body = st.text_area("Prévia", value=body, height=300)

    email = emails.get(emp_id)
    if isinstance(email, str) and email:
        st.link_button("📧 Abrir no cliente de e-mail", mailto_link(email, f"Feedback Mensal - {name}", body))
    else:
        st.caption("Colaborador sem e-mail cadastrado.")

    # --------------------------------------------------------
    # SAVE
    # --------------------------------------------------------
    c1, c2 = st.columns(2)
    status = c1.selectbox("Status", FEEDBACK_STATUSES)
    if c2.button("💾 Salvar feedback"):
        record = feedback_record(
            emp_id, (profile or {}).get("id"), year, month, strengths, improvements,
            overall_rating=rating, email_preview=body, status=status,
        )
        try:
            save_feedback(record)
            st.success("Feedback salvo!")
            st.session_state.pop("fb_email", None)
        except GestaoError as e:
            st.error(f"❌ {e}")


# -------------------------------------------------------------
# HISTORY
# -------------------------------------------------------------
def _page_history(df_emp):
    try:
        feedbacks = get_all_feedbacks()
    except GestaoError as e:
        st.error(f"❌ {e}")
        return

    if not feedbacks:
        st.info("Nenhum feedback registrado.")
        return

    names = employee_names(df_emp)
    df = pd.DataFrame(feedbacks)
    df["colaborador"] = df["employee_id"].map(lambda i: names.get(i, i))
    df["período"] = df.apply(lambda r: f"{int(r['period_month']):02d}/{int(r['period_year'])}", axis=1)

    fig = chart_status_counts(df, "Feedbacks por status")
    if fig:
        st.plotly_chart(fig, use_container_width=True)

    cols = [c for c in ["colaborador", "período", "overall_rating", "status", "sent_at"] if c in df.columns]
    st.dataframe(df[cols], use_container_width=True, hide_index=True)

    labels = {r["id"]: f"{r['colaborador']} · {r['período']}" for r in df.to_dict("records")}
    fb_id = st.selectbox("Feedback", list(labels), format_func=labels.get)
    selected = df[df["id"] == fb_id].iloc[0]
    selected = selected.where(selected.notna(), None)

    with st.expander("Detalhes", expanded=True):
        st.markdown(f"**Pontos fortes:** {selected.get('strengths') or '—'}")
        st.markdown(f"**Pontos de melhoria:** {selected.get('improvements') or '—'}")
        if selected.get("email_preview"):
            st.text(selected["email_preview"])

    if st.button("🗑️ Excluir feedback"):
        try:
            delete_feedback(fb_id)
            st.rerun()
        except GestaoError as e:
            st.error(f"❌ {e}")
