# views/schedules.py

"""
Page: Escalas
Monthly shift grid: load, edit, bulk adjust, AI generation with the
CLT consecutive-day guard, presence chart and save.
"""

import pandas as pd
import streamlit as st

from settings.constants import (
    AREAS,
    MAX_CONSECUTIVE_WORKDAYS,
    REST_CODE,
    SCHEDULE_CODES,
    SCHEDULE_STATUS_LABELS,
    SCHEDULE_STATUSES,
)
from settings.palettes import SCHEDULE_PALETTE
from utils.ai import build_schedule_input, generate_smart_schedule, get_schedule_analysis
from utils.compliance import count_violations
from utils.errors import GestaoError
from utils.repository import get_schedules_by_range, save_schedules_bulk
from utils.roles import operational_only
from utils.schedules import (
    apply_bulk_status,
    ensure_grid,
    frame_to_grid,
    grid_frame,
    grid_to_rows,
    month_bounds,
    month_days,
    presence_by_day,
    rows_to_grid,
)
from views.charts import chart_presence
from views.common import download_section, month_picker, show_insights

ALL_AREAS = "Todas"


def _load_grid(key, employee_ids, days, year, month):
    if key not in st.session_state:
        start, end = month_bounds(year, month)
        try:
            rows = get_schedules_by_range(start, end)
        except GestaoError as e:
            st.warning(f"Não foi possível carregar a escala salva: {e}")
            rows = []
        st.session_state[key] = rows_to_grid(rows, days)
    grid = ensure_grid(st.session_state[key], employee_ids, days)
    st.session_state[key] = grid
    return grid


def _merge_allocations(grid, allocations, employee_ids, days):
    """Apply generated scales (keys come back as strings) onto the grid."""
    by_str = {str(i): i for i in employee_ids}
    out = dict(grid)
    for raw_id, scale in (allocations or {}).items():
        emp_id = by_str.get(str(raw_id))
        if emp_id is None or not isinstance(scale, list):
            continue
        out[emp_id] = [s if s in SCHEDULE_CODES else REST_CODE for s in scale[:len(days)]]
    return out


# -------------------------------------------------------------
# PAGE
# -------------------------------------------------------------
def render_schedules(df_emp: pd.DataFrame):
    st.title("Escalas")

    year, month = month_picker("sched")
    area = st.selectbox("Área", [ALL_AREAS] + AREAS)

    employees = operational_only(df_emp.to_dict("records")) if df_emp is not None and not df_emp.empty else []
    if area != ALL_AREAS:
        employees = [e for e in employees if (e.get("cluster") or "").lower() == area.lower()]

    if not employees:
        st.info("Nenhum colaborador operacional para a área selecionada.")
        return

    days = month_days(year, month)
    ids = [e["id"] for e in employees]
    names = {e["id"]: e.get("full_name", "") for e in employees}
    key = f"grid_{year}_{month}"
    full_grid = _load_grid(key, ids, days, year, month)
    # bumped whenever the grid is replaced, so the editor drops its stale edits
    version = st.session_state.get(f"{key}_version", 0)
    grid = {i: full_grid[i] for i in ids}

    # --------------------------------------------------------
    # GRID EDITOR
    # --------------------------------------------------------
    frame = grid_frame(grid, days, names)
    day_cols = [c for c in frame.columns if c != "Colaborador"]
    edited = st.data_editor(
        frame,
        hide_index=True,
        use_container_width=True,
        disabled=["Colaborador"],
        column_config={c: st.column_config.SelectboxColumn(c, options=SCHEDULE_CODES, width="small")
                       for c in day_cols},
        key=f"editor_{key}_{area}_{version}",
    )
    grid = frame_to_grid(edited, ids)
    st.session_state[key] = {**full_grid, **grid}

    violations = count_violations(grid)
    if violations:
        st.warning(
            f"⚠️ Mais de {MAX_CONSECUTIVE_WORKDAYS} dias seguidos de trabalho: "
            + ", ".join(f"{names[i]} ({n})" for i, n in violations.items())
        )

    # --------------------------------------------------------
    # BULK ADJUST
    # --------------------------------------------------------
    with st.expander("⚙️ Ajuste em massa"):
        with st.form("bulk_adjust"):
            targets = st.multiselect("Colaboradores (vazio = todos)", ids, format_func=names.get)
            status = st.selectbox("Status", SCHEDULE_CODES)
            c1, c2 = st.columns(2)
            start_day = c1.number_input("Do dia", 1, len(days), 1)
            end_day = c2.number_input("Até o dia", 1, len(days), len(days))
            apply = st.form_submit_button("Aplicar")

        if apply:
            if end_day < start_day:
                st.error("O dia final deve ser maior ou igual ao inicial.")
            else:
                grid = apply_bulk_status(grid, targets or "all", status, int(start_day), int(end_day))
                st.session_state[key] = {**full_grid, **grid}
                st.session_state[f"{key}_version"] = version + 1
                st.rerun()

    # --------------------------------------------------------
    # SMART GENERATION
    # --------------------------------------------------------
    with st.expander("🤖 Gerar escala inteligente"):
        coverage = st.slider("Cobertura mínima (%)", 50, 100, 85) / 100
        if st.button("Gerar com IA"):
            data = build_schedule_input(year, month, len(days), employees, grid, coverage)
            with st.spinner("Gerando escala..."):
                result = generate_smart_schedule(data)

            if result is None:
                st.warning("IA indisponível ou resposta inválida. A escala atual foi mantida.")
            else:
                grid = _merge_allocations(grid, result.get("alocacoes"), ids, days)
                st.session_state[key] = {**full_grid, **grid}
                st.session_state[f"{key}_alerts"] = result.get("alertas_legais") or []
                st.session_state[f"{key}_metrics"] = result.get("metricas") or {}
                st.session_state[f"{key}_version"] = version + 1
                st.rerun()

        metrics = st.session_state.get(f"{key}_metrics")
        if isinstance(metrics, dict) and metrics:
            cols = st.columns(len(metrics))
            for col, (label, value) in zip(cols, metrics.items()):
                col.metric(label.replace("_", " ").title(), value)

        for alert in st.session_state.get(f"{key}_alerts", []):
            if not isinstance(alert, dict):
                continue
            colab = alert.get("colab")
            who = names.get(next((i for i in ids if str(i) == str(colab)), None), colab)
            day = f" (dia {alert['dia']})" if alert.get("dia") else ""
            show = st.success if alert.get("status") == "fixed" else st.warning
            show(f"**{who}**{day}: {alert.get('aviso', '')}")

    # --------------------------------------------------------
    # PRESENCE
    # --------------------------------------------------------
    presence = presence_by_day(grid, days)
    fig = chart_presence(presence)
    if fig:
        st.plotly_chart(fig, use_container_width=True)

    with st.expander("🎨 Escala por cores"):
        styled = grid_frame(grid, days, names).style.map(
            lambda v: f"background-color: {SCHEDULE_PALETTE[v]}; color: #0F172A" if v in SCHEDULE_PALETTE else ""
        )
        st.dataframe(styled, use_container_width=True, hide_index=True)

    if st.button("🔍 Analisar escala com IA"):
        data = presence.drop(columns=["data"]).to_dict("records")
        show_insights(get_schedule_analysis(data))

    # --------------------------------------------------------
    # SAVE / EXPORT
    # --------------------------------------------------------
    st.markdown("---")
    c1, c2 = st.columns(2)
    status = c1.selectbox("Status ao salvar", SCHEDULE_STATUSES, index=1, format_func=SCHEDULE_STATUS_LABELS.get)
    if c2.button("💾 Salvar escala"):
        try:
            saved = save_schedules_bulk(grid_to_rows(grid, days, status=status))
            st.success(f"Escala salva ({len(saved)} registros).")
        except GestaoError as e:
            st.error(f"❌ {e}")

    download_section(grid_frame(grid, days, names), f"escala_{year}_{month:02d}", key="sched")
