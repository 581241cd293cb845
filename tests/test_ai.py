import json

import pytest

import utils.ai as ai
from utils.compliance import CORRECTION_NOTICE
from utils.errors import AIResponseError, AIUnavailableError


class FakeModels:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate_content(self, model=None, contents=None, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error:
            raise self.error
        return type("Response", (), {"text": self.reply})()


class FakeClient:
    def __init__(self, reply=None, error=None):
        self.models = FakeModels(reply, error)


@pytest.fixture
def gemini(monkeypatch):
    """Enable the key and route calls to a fake client."""
    monkeypatch.setattr(ai, "GEMINI_API_KEY", "test-key")

    def install(reply=None, error=None):
        client = FakeClient(reply, error)
        monkeypatch.setattr(ai, "_client", lambda: client)
        return client.models

    return install


@pytest.fixture
def no_key(monkeypatch):
    monkeypatch.setattr(ai, "GEMINI_API_KEY", "")


# -------------------------------------------------------------
# JSON EXTRACTION
# -------------------------------------------------------------
def test_extract_json_array_with_prose():
    text = 'Claro! Aqui está:\n```json\n[{"title": "A"}]\n```\nAbraço'
    assert ai.extract_json(text) == [{"title": "A"}]


def test_extract_json_object():
    text = 'Resultado: {"alocacoes": {"1": ["FOLGA"]}} fim'
    assert ai.extract_json(text, "object") == {"alocacoes": {"1": ["FOLGA"]}}


def test_extract_json_invalid():
    with pytest.raises(AIResponseError):
        ai.extract_json("sem json aqui", "object")


def test_is_quota_error():
    assert ai.is_quota_error(Exception("429 RESOURCE_EXHAUSTED"))
    assert ai.is_quota_error(Exception("Quota exceeded for metric"))
    assert not ai.is_quota_error(Exception("Internal error"))


# -------------------------------------------------------------
# INSIGHTS
# -------------------------------------------------------------
def test_insights_without_key(no_key):
    assert ai.get_kpi_tip("Headcount", "10", "up") == ai.UNAVAILABLE_TIP
    assert ai.get_smart_alerts("x")[0]["title"] == "IA Indisponível"
    assert ai.get_headcount_suggestions([]) == []
    assert ai.get_schedule_analysis([]) == []
    assert ai.get_ai_reply([{"role": "user", "parts": "oi"}]) == "Chave de API não configurada."


def test_kpi_tip(gemini):
    models = gemini(reply="  Reforce a escala de sábado.  ")
    assert ai.get_kpi_tip("Cobertura", "80%", "queda") == "Reforce a escala de sábado."
    assert "KPI: Cobertura" in models.calls[0]["contents"]


def test_kpi_tip_quota(gemini):
    gemini(error=RuntimeError("429 Resource exhausted"))
    assert ai.get_kpi_tip("Cobertura", "80%", "queda") == ai.QUOTA_TIP


def test_smart_alerts_parsed(gemini):
    alerts = [{"type": "critical", "title": "T", "desc": "D", "icon": "i", "action": "OK"}]
    gemini(reply=json.dumps(alerts))
    assert ai.get_smart_alerts("cenário") == alerts


def test_smart_alerts_fallback_on_bad_reply(gemini):
    gemini(reply="não sei")
    assert ai.get_smart_alerts("cenário")[0]["title"] == "Alertas Padrão"


def test_headcount_and_schedule_fallbacks(gemini):
    gemini(error=RuntimeError("boom"))
    assert ai.get_headcount_suggestions([{"gestor": "A"}]) == ai.FALLBACK_HEADCOUNT
    assert ai.get_schedule_analysis([{"dia": 1}]) == ai.FALLBACK_SCHEDULE_ANALYSIS


def test_ai_reply_builds_contents(gemini):
    models = gemini(reply="Resposta")
    history = [
        {"role": "user", "parts": "Quantas folgas?"},
        {"role": "model", "parts": ""},
        {"role": "user", "parts": "E no domingo?"},
    ]
    assert ai.get_ai_reply(history) == "Resposta"

    contents = models.calls[0]["contents"]
    assert contents == [
        {"role": "user", "parts": [{"text": "Quantas folgas?"}]},
        {"role": "user", "parts": [{"text": "E no domingo?"}]},
    ]
    assert models.calls[0]["config"].system_instruction == ai.CHAT_INSTRUCTION


# -------------------------------------------------------------
# FEEDBACK WRITING
# -------------------------------------------------------------
def test_improve_feedback_text_requires_text(gemini):
    with pytest.raises(AIUnavailableError, match="Digite"):
        ai.improve_feedback_text("   ")


def test_improve_feedback_text_without_key(no_key):
    with pytest.raises(AIUnavailableError, match="GEMINI_API_KEY"):
        ai.improve_feedback_text("bom trabalho")


def test_improve_feedback_text(gemini):
    models = gemini(reply="Demonstra excelente domínio técnico.")
    assert ai.improve_feedback_text("bom tecnico", field="improvements") == "Demonstra excelente domínio técnico."
    assert "PONTOS DE MELHORIA" in models.calls[0]["contents"]


def test_generate_feedback_email_errors(gemini):
    with pytest.raises(AIUnavailableError, match="Preencha"):
        ai.generate_feedback_email("Ana", "", "", [], [])

    gemini(error=RuntimeError("quota exceeded"))
    with pytest.raises(AIUnavailableError, match="Limite"):
        ai.generate_feedback_email("Ana", "pontual", "", [], [])


def test_generate_feedback_email_prompt(gemini):
    models = gemini(reply="Olá Ana")
    pdi = [{"action": "Curso de redes", "deadline": "2026-12-01"}]
    assert ai.generate_feedback_email("Ana", "pontual", "", ["Reduzir SLA"], pdi) == "Olá Ana"

    prompt = models.calls[0]["contents"]
    assert "1. Reduzir SLA" in prompt
    assert "1. Curso de redes - Prazo: 2026-12-01" in prompt


# -------------------------------------------------------------
# SMART SCHEDULE
# -------------------------------------------------------------
EMPLOYEES = [
    {"id": 1, "full_name": "Ana", "role": "ANALISTA COP REDE I", "cluster": "Sul"},
    {"id": "2", "full_name": "Bruno", "role": "ANALISTA COP REDE II", "cluster": "Norte"},
]


def test_build_schedule_input():
    data = ai.build_schedule_input(
        2026, 4, 30, EMPLOYEES,
        current_grid={1: ["FÉRIAS"] * 30},
        coverage_target=0.9,
        hours_balances={"2": 12.5},
    )

    assert data["mes_ano"] == "2026-04"
    assert data["num_dias_mes"] == 30
    assert {h["nome"] for h in data["feriados"]} == {"Sexta-feira Santa", "Tiradentes"}
    assert data["turnos"][0] == {"codigo": "08-17", "alvo_cobertura_pct": 0.9}
    assert data["politicas"]["max_dias_consecutivos"] == 6

    ana, bruno = data["colaboradores"]
    assert ana["id"] == "1" and ana["escala_atual"] == ["FÉRIAS"] * 30
    assert ana["saldo_banco_horas"] == 0
    assert bruno["escala_atual"] == [] and bruno["saldo_banco_horas"] == 12.5


def test_generate_smart_schedule_without_key(no_key):
    assert ai.generate_smart_schedule({"num_dias_mes": 30}) is None


@pytest.mark.parametrize("reply", ["nada útil", "[1, 2, 3]"])
def test_generate_smart_schedule_unusable_reply(gemini, reply):
    gemini(reply=reply)
    assert ai.generate_smart_schedule({"num_dias_mes": 30, "mes_ano": "2026-03"}) is None


def test_generate_smart_schedule_is_always_corrected(gemini):
    reply = {
        "alocacoes": {"1": ["08-17"] * 10, "2": "inválido"},
        "alertas_legais": [{"colab": "Ana", "aviso": "ok", "status": "warning"}],
        "metricas": {"cobertura_media": "90%"},
    }
    models = gemini(reply="```json\n" + json.dumps(reply) + "\n```")

    result = ai.generate_smart_schedule({"num_dias_mes": 10, "mes_ano": "2026-03"})

    assert result["alocacoes"]["1"][6] == "FOLGA"
    assert result["alocacoes"]["1"].count("FOLGA") == 1
    assert result["alocacoes"]["2"] == "inválido"
    assert len(result["alertas_legais"]) == 2
    fixed = result["alertas_legais"][1]
    assert fixed["aviso"] == CORRECTION_NOTICE
    assert fixed["dia"] == 7 and fixed["data"] == "2026-03-07"
    assert "2026-03" in models.calls[0]["contents"]


def test_apply_clt_guard_replaces_bad_alert_list():
    result = {"alocacoes": {"1": ["09-18"] * 8}, "alertas_legais": "nenhum"}
    guarded = ai.apply_clt_guard(result, 8)

    assert guarded["alocacoes"]["1"][6] == "FOLGA"
    assert len(guarded["alertas_legais"]) == 1
    assert guarded["alertas_legais"][0]["data"] is None
