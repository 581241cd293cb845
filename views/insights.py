# views/insights.py

"""
Page: IA Command Center
Chat with the PeopleOps assistant (history kept in session state).
"""

import streamlit as st

from utils.ai import ai_enabled, get_ai_reply

GREETING = "Olá! Sou seu copiloto PeopleOps. Pergunte sobre escalas, banco de horas ou dimensionamento de times."


def render_insights():
    st.title("IA Command Center")

    if not ai_enabled():
        st.warning("Configure GEMINI_API_KEY para habilitar o assistente.")

    history = st.session_state.setdefault("ai_history", [{"role": "model", "parts": GREETING}])

    for msg in history:
        with st.chat_message("assistant" if msg["role"] == "model" else "user"):
            st.markdown(msg["parts"])

    prompt = st.chat_input("Digite sua pergunta...")
    if prompt:
        history.append({"role": "user", "parts": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Pensando..."):
                # the greeting is UI only; the model conversation starts with the user
                reply = get_ai_reply(history[1:])
            st.markdown(reply)
        history.append({"role": "model", "parts": reply})

    if len(history) > 1 and st.button("Limpar conversa"):
        st.session_state.pop("ai_history", None)
        st.rerun()
