# utils/ai.py

"""
Gemini helpers (google-genai SDK):
KPI tips, smart alerts, chart and schedule analysis, headcount suggestions,
feedback writing assistance, chat, and the CLT-aware smart schedule generator.

Every public function returns a Portuguese fallback instead of raising
when the API key is missing or the call fails.
"""

import json
import logging
import re

from google import genai
from google.genai import types

from settings.constants import (
    DEFAULT_COVERAGE_TARGET,
    DEFAULT_MONTH_DAYS,
    DEFAULT_WEEKLY_HOURS,
    DEFAULT_WORK_REGIME,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    MAX_CONSECUTIVE_WORKDAYS,
    WORK_SHIFTS,
)
from utils.calculations import holidays_in_month
from utils.compliance import correct_allocations
from utils.errors import AIResponseError, AIUnavailableError

logger = logging.getLogger(__name__)

QUOTA_MARKERS = ("quota", "429", "resource_exhausted")

UNAVAILABLE_TIP = (
    "IA temporariamente indisponível. Configure GEMINI_API_KEY para habilitar insights inteligentes."
)
QUOTA_TIP = "⚠️ Limite de uso da IA atingido. Aguarde algumas horas ou configure uma nova API key."

CHAT_INSTRUCTION = "Responda como um assistente especializado em gestão operacional (PeopleOps)."

FALLBACK_HEADCOUNT = [
    {
        "title": "Equilíbrio de Gestão",
        "description": "O Cluster Leste apresenta 30% mais colaboradores por gestor que a média. "
                       "Considere promover um novo supervisor.",
        "type": "warning",
    },
    {
        "title": "Otimização Norte",
        "description": "A carga de supervisão no Norte permite a absorção de 2 novos times "
                       "operacionais sem perda de qualidade.",
        "type": "success",
    },
]

FALLBACK_SCHEDULE_ANALYSIS = [
    {
        "title": "Defasagem em Finais de Semana",
        "description": "O próximo Sábado apresenta uma queda de 40% na escala técnica. "
                       "Verifique se há folgas excessivas programadas.",
        "type": "warning",
    },
    {
        "title": "Cobertura de Férias",
        "description": "A concentração de férias planejada para a semana 3 pode comprometer o SLA do Cluster Sul.",
        "type": "info",
    },
]


# -------------------------------------------------------------
# CLIENT / RAW CALLS
# -------------------------------------------------------------
def ai_enabled() -> bool:
    return bool(GEMINI_API_KEY)


def _client():
    if not GEMINI_API_KEY:
        raise AIUnavailableError("GEMINI_API_KEY não configurada.")
    return genai.Client(api_key=GEMINI_API_KEY)


def is_quota_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_MARKERS)


def _generate(contents, config=None) -> str:
    """Single generate_content call; returns the stripped text."""
    response = _client().models.generate_content(
        model=GEMINI_MODEL,
        contents=contents,
        config=config,
    )
    return (response.text or "").strip()


def extract_json(text: str, kind: str = "array"):
    """
    Pull the first JSON array (kind="array") or object (kind="object")
    out of a model reply, tolerating prose and ```json fences.
    """
    text = (text or "").strip()
    pattern = re.compile(r"\[.*\]", re.DOTALL) if kind == "array" else re.compile(r"\{[\s\S]*\}")
    match = pattern.search(text)
    candidate = match.group(0) if match else re.sub(r"```json|```", "", text).strip()

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AIResponseError(f"Resposta da IA não é um JSON válido: {e}") from e


# -------------------------------------------------------------
# INSIGHTS
# -------------------------------------------------------------
def get_kpi_tip(label: str, value: str, trend: str) -> str:
    if not ai_enabled():
        return UNAVAILABLE_TIP

    prompt = (
        "Como especialista em gestão de pessoas, analise este KPI e dê uma dica prática "
        "e objetiva (máximo 2 linhas):\n"
        f"KPI: {label}\nValor: {value}\nTendência: {trend}\n\n"
        "Responda de forma direta, sem introduções."
    )
    try:
        return _generate(prompt)
    except Exception as e:
        logger.error("KPI tip failed: %s", e)
        if is_quota_error(e):
            return QUOTA_TIP
        return "Não foi possível gerar uma dica no momento."


def get_smart_alerts(scenario: str) -> list:
    if not ai_enabled():
        return [{
            "type": "info", "title": "IA Indisponível",
            "desc": "Configure GEMINI_API_KEY para alertas inteligentes.", "icon": "info", "action": "OK",
        }]

    prompt = (
        f'Analise o cenário operacional atual: "{scenario}".\n'
        "Retorne um JSON (apenas o array de objetos) com 3 alertas inteligentes.\n"
        "Cada objeto deve ter:\n"
        '{ "type": "critical" | "warning" | "info", "title": "título curto", '
        '"desc": "descrição acionável", "icon": "ícone", "action": "texto do botão" }'
    )
    try:
        return extract_json(_generate(prompt), "array")
    except Exception as e:
        logger.error("Smart alerts failed: %s", e)
        if is_quota_error(e):
            return [{
                "type": "warning", "title": "Limite de IA Atingido",
                "desc": "Quota da API excedida. Aguarde algumas horas.", "icon": "warning", "action": "OK",
            }]
        return [{
            "type": "info", "title": "Alertas Padrão",
            "desc": "Usando alertas padrão. IA temporariamente indisponível.", "icon": "info", "action": "OK",
        }]


def get_chart_deep_dive(data: list, period: str) -> str:
    if not ai_enabled():
        return "⚠️ IA indisponível. Configure GEMINI_API_KEY para análises automáticas."

    prompt = (
        "Você é um analista estratégico de PeopleOps.\n"
        f"Analise os dados de performance por cluster regional ({period}):\n"
        f"{json.dumps(data, ensure_ascii=False, default=str)}\n\n"
        "Forneça uma análise executiva curta (30 a 40 palavras).\n"
        "Identifique o cluster de melhor performance, o de maior risco (menor valor) "
        "e sugira uma ação imediata.\n"
        "Mantenha um tom profissional e focado em resultados."
    )
    try:
        return _generate(prompt)
    except Exception as e:
        logger.error("Chart deep dive failed: %s", e)
        if is_quota_error(e):
            return QUOTA_TIP
        return "Análise indisponível no momento. Verifique os dados manualmente."


def get_ai_reply(history: list) -> str:
    """history: [{"role": "user"|"model", "parts": "text"}, ...]"""
    if not ai_enabled():
        return "Chave de API não configurada."

    contents = [
        {"role": h["role"], "parts": [{"text": h["parts"]}]}
        for h in history
        if h.get("parts")
    ]
    try:
        return _generate(contents, types.GenerateContentConfig(system_instruction=CHAT_INSTRUCTION))
    except Exception as e:
        logger.error("Chat reply failed: %s", e)
        if is_quota_error(e):
            return QUOTA_TIP
        return "Desculpe, tive um problema ao processar sua solicitação."


def get_headcount_suggestions(managers_data: list) -> list:
    if not ai_enabled():
        return []

    prompt = (
        "Você é um consultor estratégico de PeopleOps especializado em dimensionamento de times (Staffing).\n"
        "Analise os dados de gestão abaixo (nome do gestor, área e quantidade de subordinados/headcount):\n"
        f"{json.dumps(managers_data, ensure_ascii=False, default=str)}\n\n"
        "Identifique desequilíbrios significativos (gestores com muito mais ou muito menos pessoas "
        "que a média das outras áreas).\n"
        "Gere 2 ou 3 sugestões pragmáticas de redistribuição ou contratação para equalizar a carga de gestão.\n\n"
        "Retorne APENAS um JSON no seguinte formato:\n"
        '[{ "title": "Título curto", "description": "Explicação breve com justificativa baseada nos dados", '
        '"type": "warning" | "info" | "success" }]'
    )
    try:
        return extract_json(_generate(prompt), "array")
    except Exception as e:
        logger.error("Headcount suggestions failed: %s", e)
        return FALLBACK_HEADCOUNT


def get_schedule_analysis(schedule_data: list) -> list:
    if not ai_enabled():
        return []

    prompt = (
        "Você é um analista de Workforce Management (WFM) especializado em COP e Operações de Campo.\n"
        "Analise os dados de escala mensal abaixo (headcount diário planejado):\n"
        f"{json.dumps(schedule_data, ensure_ascii=False, default=str)}\n\n"
        "Identifique GAPS críticos (dias com queda brusca de pessoal) ou excessos de folgas simultâneas.\n"
        "Gere 2 ou 3 alertas estratégicos para o gestor.\n\n"
        "Retorne APENAS um JSON no seguinte formato:\n"
        '[{ "title": "Alerta Curto", "description": "Justificativa baseada nos dados", '
        '"type": "warning" | "info" | "success" }]'
    )
    try:
        return extract_json(_generate(prompt), "array")
    except Exception as e:
        logger.error("Schedule analysis failed: %s", e)
        return FALLBACK_SCHEDULE_ANALYSIS


# -------------------------------------------------------------
# FEEDBACK WRITING
# -------------------------------------------------------------
def improve_feedback_text(text: str, field: str = "strengths") -> str:
    """
    Rewrite a strengths/improvements paragraph. Raises AIUnavailableError
    (with a user-facing message) so the form can keep the original text.
    """
    if not text or not text.strip():
        raise AIUnavailableError("Digite algum texto antes de usar a IA.")
    if not ai_enabled():
        raise AIUnavailableError("⚠️ Configure GEMINI_API_KEY para usar a IA.")

    if field == "strengths":
        subject = "PONTOS FORTES"
        tone = "Mantenha o tom positivo e motivador."
    else:
        subject = "PONTOS DE MELHORIA"
        tone = "Use linguagem empática e focada em desenvolvimento."

    prompt = (
        "Você é um especialista em RH e feedback corporativo. "
        f"Melhore o seguinte texto sobre {subject} de um colaborador, tornando-o mais profissional, "
        f"específico e construtivo. {tone} Não adicione informações que não estejam no texto "
        "original, apenas melhore a redação.\n\n"
        f"Texto original:\n{text}\n\n"
        "Texto melhorado (responda APENAS com o texto melhorado, sem introduções):"
    )
    try:
        return _generate(prompt)
    except Exception as e:
        logger.error("Feedback text improvement failed: %s", e)
        if is_quota_error(e):
            raise AIUnavailableError(
                "⚠️ Limite de uso da IA atingido. Aguarde algumas horas ou tente novamente mais tarde."
            ) from e
        raise AIUnavailableError("⚠️ Erro ao melhorar texto. Tente novamente.") from e


def generate_feedback_email(employee_name, strengths, improvements, goals, pdi) -> str:
    """Full e-mail draft for a monthly feedback."""
    if not (strengths or improvements or goals):
        raise AIUnavailableError(
            "⚠️ Preencha pelo menos um campo (Pontos Fortes, Melhorias ou Metas) para gerar uma prévia do e-mail."
        )
    if not ai_enabled():
        raise AIUnavailableError("⚠️ Configure GEMINI_API_KEY para usar a IA.")

    goals_text = "\n".join(f"{i}. {g}" for i, g in enumerate(goals or [], 1)) or "Nenhuma meta definida"
    pdi_text = "\n".join(
        f"{i}. {p.get('action', '')} - Prazo: {p.get('deadline', '')}" for i, p in enumerate(pdi or [], 1)
    ) or "Nenhuma ação definida"

    prompt = (
        "Você é um especialista em comunicação corporativa. Crie um e-mail profissional e empático "
        f"de feedback mensal para um colaborador chamado {employee_name or '[Nome]'}.\n\n"
        "Use as seguintes informações:\n\n"
        f"PONTOS FORTES:\n{strengths or 'Não informado'}\n\n"
        f"PONTOS DE MELHORIA:\n{improvements or 'Não informado'}\n\n"
        f"METAS ACORDADAS:\n{goals_text}\n\n"
        f"PLANO DE DESENVOLVIMENTO (PDI):\n{pdi_text}\n\n"
        "Crie um e-mail completo, profissional, motivador e bem estruturado. Use emojis sutis se "
        'apropriado. Termine com uma assinatura "Equipe de Gestão de Pessoas".'
    )
    try:
        return _generate(prompt)
    except Exception as e:
        logger.error("Feedback e-mail generation failed: %s", e)
        if is_quota_error(e):
            raise AIUnavailableError("⚠️ Limite de uso da IA atingido. Aguarde algumas horas.") from e
        raise AIUnavailableError("⚠️ Erro ao gerar prévia. Tente novamente.") from e


# -------------------------------------------------------------
# SMART SCHEDULE
# -------------------------------------------------------------
def build_schedule_input(year: int, month: int, num_days: int, employees: list,
                         current_grid=None, coverage_target=DEFAULT_COVERAGE_TARGET,
                         hours_balances=None) -> dict:
    """
    Generator input. employees are employee rows; current_grid maps
    employee id -> current daily codes (leave codes are kept by the model).
    """
    current_grid = current_grid or {}
    hours_balances = hours_balances or {}
    return {
        "mes_ano": f"{year:04d}-{month:02d}",
        "num_dias_mes": num_days,
        "feriados": holidays_in_month(year, month),
        "turnos": [
            {"codigo": code, "alvo_cobertura_pct": coverage_target}
            for code in WORK_SHIFTS
        ],
        "politicas": {
            "regime": DEFAULT_WORK_REGIME,
            "max_dias_consecutivos": MAX_CONSECUTIVE_WORKDAYS,
            "carga_semanal_horas": DEFAULT_WEEKLY_HOURS,
            "domingo_folga_min_mes": 1,
        },
        "colaboradores": [
            {
                "id": str(e["id"]),
                "nome": e.get("full_name", ""),
                "cargo": e.get("role", ""),
                "area": e.get("cluster", ""),
                "escala_atual": current_grid.get(e["id"], current_grid.get(str(e["id"]), [])),
                "saldo_banco_horas": hours_balances.get(e["id"], 0),
            }
            for e in employees
        ],
    }


def _schedule_prompt(data: dict) -> str:
    turnos = data.get("turnos") or [{}]
    coverage = (turnos[0].get("alvo_cobertura_pct") or DEFAULT_COVERAGE_TARGET) * 100
    num_days = data.get("num_dias_mes", DEFAULT_MONTH_DAYS)
    return f"""Você é um motor de geração de escalas (WFM Engine) ultra-especializado em leis trabalhistas brasileiras (CLT).
Sua tarefa é gerar/ajustar uma escala mensal 5x2.

REGRAS OBRIGATÓRIAS (CLT - NUNCA VIOLAR):
1. DSR (Descanso Semanal Remunerado): 24h consecutivas obrigatórias a cada 6 dias trabalhados.
2. LIMITE CONSECUTIVO CRÍTICO: PROIBIDO trabalhar 7 dias seguidos. O 7º dia DEVE ser 'FOLGA'.
3. REVEZAMENTO DE DOMINGOS: Pelo menos um domingo de folga no mês.
4. JORNADA 5x2: Cada colaborador deve ter aproximadamente 2 folgas para cada 5 dias de trabalho.
5. COM (Folga Compensatória): Se trabalhar em feriado, deve ter uma FOLGA extra na semana posterior.

STATUS PERMITIDOS:
- {", ".join(f"'{s}'" for s in WORK_SHIFTS)} (Turnos de trabalho)
- 'FOLGA' (Descanso semanal ou feriado) - OBRIGATÓRIO incluir pelo menos 4 a 8 folgas por mês por pessoa.
- 'FÉRIAS', 'INSS', 'ATESTADO', 'AFAST' (Manter conforme recebido)

DADOS DE ENTRADA:
{json.dumps(data, ensure_ascii=False, default=str)}

TAREFA:
1. Gere a escala diária para cada colaborador ({data.get("mes_ano")}).
2. O mês deve ter {num_days} dias. Retorne exatamente {num_days} status para cada colaborador.
3. Verifique INDIVIDUALMENTE cada colaborador: se houver 6 dias seguidos sem 'FOLGA', o próximo dia DEVE ser 'FOLGA'.
4. Otimize para cobertura mínima de {coverage:.0f}%, mas PRIORIZE as leis trabalhistas sobre a cobertura.

AVALIAÇÃO FINAL (AUTO-CHECK):
Antes de gerar o JSON, verifique: "Algum colaborador trabalha 7 dias seguidos?". Se sim, troque um turno por 'FOLGA'.

RETORNE APENAS UM JSON NO FORMATO ABAIXO (SEM TEXTO ADICIONAL):
{{
  "alocacoes": {{ "ID_COLABORADOR": ["STATUS_DIA_1", "STATUS_DIA_2", ...] }},
  "alertas_legais": [{{ "colab": "Nome", "aviso": "Explicação CLT", "status": "fixed|warning" }}],
  "metricas": {{ "cobertura_media": "92%", "riscos_clt": 0, "feriados_com": 2 }},
  "uso_banco_horas": {{ "ID_COLABORADOR": 10 }}
}}"""


def _year_month(mes_ano):
    try:
        year, month = (int(part) for part in str(mes_ano).split("-")[:2])
    except (TypeError, ValueError):
        return None, None
    return year, month


def apply_clt_guard(result: dict, num_days: int, mes_ano=None) -> dict:
    """Run the consecutive-day corrector over a generator reply, in place."""
    year, month = _year_month(mes_ano)
    allocations = result.get("alocacoes")
    if isinstance(allocations, dict):
        corrected, alerts = correct_allocations(allocations, num_days=num_days, year=year, month=month)
        result["alocacoes"] = corrected
        if alerts:
            result.setdefault("alertas_legais", [])
            if not isinstance(result["alertas_legais"], list):
                result["alertas_legais"] = []
            result["alertas_legais"].extend(alerts)
    return result


def generate_smart_schedule(data: dict):
    """
    Ask the model for a month schedule and force the consecutive-day
    limit on its reply. Returns None when no usable reply is available.
    """
    if not ai_enabled():
        return None

    try:
        result = extract_json(_generate(_schedule_prompt(data)), "object")
    except Exception as e:
        logger.error("Smart schedule generation failed: %s", e)
        return None

    if not isinstance(result, dict):
        logger.error("Smart schedule reply is not an object: %r", type(result))
        return None

    return apply_clt_guard(result, data.get("num_dias_mes") or DEFAULT_MONTH_DAYS, data.get("mes_ano"))
