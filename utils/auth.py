# utils/auth.py

"""
Supabase Auth over REST:
password sign-in, sign-out, password change and admin user creation,
plus the request headers every REST call needs.
"""

import logging
import re

import requests
import streamlit as st

from settings.constants import API_KEY, REQUEST_TIMEOUT, SERVICE_ROLE_KEY, SUPABASE_URL
from utils.errors import AuthError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def get_auth_headers(token=None):
    token = token or st.session_state.get("access_token")
    if not token:
        return None
    return {
        "apikey": API_KEY,
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def service_headers():
    """Headers for admin scripts (service role key, bypasses RLS)."""
    if not SERVICE_ROLE_KEY:
        raise AuthError("SUPABASE_SERVICE_ROLE_KEY não configurada.")
    return {
        "apikey": SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {SERVICE_ROLE_KEY}",
        "Content-Type": "application/json",
    }


def sign_in(email, password) -> dict:
    """Password grant. Returns the session payload or raises AuthError."""
    url = f"{SUPABASE_URL}/auth/v1/token?grant_type=password"
    headers = {
        "apikey": API_KEY,
        "Content-Type": "application/json",
    }
    try:
        r = requests.post(
            url, headers=headers, json={"email": email, "password": password}, timeout=REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        logger.error("Login request failed: %s", e)
        raise AuthError("Sem conexão com o servidor. Tente novamente.") from e
    if r.status_code != 200:
        logger.warning("Login failed for %s: %s", email, r.status_code)
        raise AuthError(r.text)
    return r.json()


def login(email, password):
    try:
        data = sign_in(email, password)
    except AuthError as e:
        st.error(f"❌ Login falhou: {e}")
        return False

    st.session_state["access_token"] = data["access_token"]
    st.session_state["user_email"] = data["user"]["email"]
    st.session_state["user_id"] = data["user"]["id"]
    st.session_state.pop("user_profile", None)
    logger.info("User %s signed in", data["user"]["email"])
    return True


def logout():
    token = st.session_state.get("access_token")
    if token:
        try:
            requests.post(
                f"{SUPABASE_URL}/auth/v1/logout",
                headers=get_auth_headers(token),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.warning("Remote logout failed: %s", e)

    for key in ("access_token", "user_email", "user_id", "user_profile", "bank_import"):
        st.session_state.pop(key, None)


def validate_password(password: str):
    """Return an error message, or None when the password is acceptable."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres"
    if not re.search(r"[A-Z]", password):
        return "A senha deve ter pelo menos uma letra maiúscula"
    if not re.search(r"[a-z]", password):
        return "A senha deve ter pelo menos uma letra minúscula"
    if not re.search(r"[0-9]", password):
        return "A senha deve ter pelo menos um número"
    return None


def password_strength(password: str):
    """(score 0-5, label)"""
    score = sum([
        len(password) >= MIN_PASSWORD_LENGTH,
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"[0-9]", password)),
        bool(re.search(r"[^A-Za-z0-9]", password)),
    ])
    if score <= 2:
        return score, "Fraca"
    if score <= 3:
        return score, "Média"
    if score <= 4:
        return score, "Forte"
    return score, "Muito Forte"


def update_password(new_password, token=None):
    headers = get_auth_headers(token)
    if not headers:
        raise AuthError("Sessão expirada. Faça login novamente.")
    try:
        r = requests.put(
            f"{SUPABASE_URL}/auth/v1/user",
            headers=headers,
            json={"password": new_password},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error("Password update request failed: %s", e)
        raise AuthError("Sem conexão com o servidor. Tente novamente.") from e
    if r.status_code >= 300:
        raise AuthError(r.text)
    logger.info("Password updated")


def admin_create_user(email, password, full_name) -> dict:
    """Create a confirmed auth user through the admin endpoint."""
    r = requests.post(
        f"{SUPABASE_URL}/auth/v1/admin/users",
        headers=service_headers(),
        json={
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"full_name": full_name},
        },
        timeout=REQUEST_TIMEOUT,
    )
    if r.status_code >= 300:
        raise AuthError(r.text)
    return r.json()
