import pytest
import requests

import utils.auth as auth
from utils.errors import AuthError


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


@pytest.mark.parametrize("password, fragment", [
    ("Ab1", "8 caracteres"),
    ("semmaiuscula1", "maiúscula"),
    ("SEMMINUSCULA1", "minúscula"),
    ("SemNumeroAqui", "número"),
])
def test_validate_password_errors(password, fragment):
    assert fragment in auth.validate_password(password)


def test_validate_password_ok():
    assert auth.validate_password("Valida123") is None


@pytest.mark.parametrize("password, score, label", [
    ("abc", 1, "Fraca"),
    ("abcdefgh1", 3, "Média"),
    ("Abcdefg1", 4, "Forte"),
    ("Abcdefg1!", 5, "Muito Forte"),
])
def test_password_strength(password, score, label):
    assert auth.password_strength(password) == (score, label)


def test_get_auth_headers_with_token():
    headers = auth.get_auth_headers("tok")
    assert headers["Authorization"] == "Bearer tok"
    assert headers["Content-Type"] == "application/json"


def test_service_headers_require_key(monkeypatch):
    monkeypatch.setattr(auth, "SERVICE_ROLE_KEY", "")
    with pytest.raises(AuthError):
        auth.service_headers()

    monkeypatch.setattr(auth, "SERVICE_ROLE_KEY", "srv")
    assert auth.service_headers()["apikey"] == "srv"


def test_sign_in(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, json))
        if json["password"] == "right":
            return FakeResponse(200, {"access_token": "t", "user": {"id": "u", "email": json["email"]}})
        return FakeResponse(400, text="Invalid login credentials")

    monkeypatch.setattr(auth.requests, "post", fake_post)

    assert auth.sign_in("a@b.com", "right")["access_token"] == "t"
    assert calls[0][0].endswith("/auth/v1/token?grant_type=password")

    with pytest.raises(AuthError, match="Invalid login"):
        auth.sign_in("a@b.com", "wrong")


def test_update_password_without_session(monkeypatch):
    monkeypatch.setattr(auth, "get_auth_headers", lambda token=None: None)
    with pytest.raises(AuthError):
        auth.update_password("Nova1234")


def test_sign_in_offline(monkeypatch):
    def offline(*args, **kwargs):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(auth.requests, "post", offline)
    with pytest.raises(AuthError, match="Sem conexão"):
        auth.sign_in("a@b.com", "right")
