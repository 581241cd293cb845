# utils/feedbacks.py

"""
Monthly feedback helpers: summary e-mail body, mailto link and
the database payload built from the feedback form.
"""

from datetime import datetime, timezone
from urllib.parse import quote


def _numbered(items, render, empty):
    lines = [f"{i}. {render(item)}" for i, item in enumerate(items or [], 1)]
    return "\n".join(lines) or empty


def feedback_email_body(name, strengths, improvements, goals, pdi) -> str:
    goals_text = _numbered(goals, str, "Nenhuma meta definida")
    pdi_text = _numbered(
        pdi, lambda p: f"{p.get('action', '')} - Prazo: {p.get('deadline', '')}", "Nenhuma ação definida"
    )
    return (
        f"Olá {name},\n\n"
        "Segue o resumo do seu feedback mensal:\n\n"
        f"📌 PONTOS FORTES:\n{strengths or 'Não informado'}\n\n"
        f"📌 PONTOS DE MELHORIA:\n{improvements or 'Não informado'}\n\n"
        f"📌 METAS ACORDADAS:\n{goals_text}\n\n"
        f"📌 PLANO DE DESENVOLVIMENTO (PDI):\n{pdi_text}\n\n"
        "Atenciosamente,\n"
        "Equipe de Gestão de Pessoas"
    )


def mailto_link(email: str, subject: str, body: str) -> str:
    return f"mailto:{email}?subject={quote(subject)}&body={quote(body)}"


def feedback_record(employee_id, evaluator_id, year: int, month: int, strengths, improvements,
                    overall_rating=None, email_preview=None, status="draft", feedback_id=None) -> dict:
    """`feedbacks` upsert payload; sent feedbacks get a sent_at stamp."""
    record = {
        "employee_id": employee_id,
        "evaluator_id": evaluator_id,
        "period_year": year,
        "period_month": month,
        "strengths": strengths or "",
        "improvements": improvements or "",
        "overall_rating": overall_rating,
        "email_preview": email_preview,
        "status": status,
    }
    if status == "sent":
        record["sent_at"] = datetime.now(timezone.utc).isoformat()
    if feedback_id:
        record["id"] = feedback_id
    return {k: v for k, v in record.items() if v is not None}
