# views/charts.py

"""
Plotly figures shared by the views.
Every function returns None when there is nothing to plot.
"""

import datetime

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from settings.constants import HOLIDAYS, SCHEDULE_STATUS_LABELS
from settings.palettes import (
    ABSENCE_COLOR,
    BALANCE_PALETTE,
    BLUE_PALETTE,
    PRESENCE_COLOR,
    VACATION_PALETTE,
)
from utils.hours_bank import balance_status


def _transparent(fig, **layout):
    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font_color="white",
        **layout,
    )
    return fig


# --------------------------------------------------------
# PIE CHART: Employees per cluster
# --------------------------------------------------------
def chart_employees_per_cluster(df):
    if df.empty or "cluster" not in df.columns:
        return None

    clusters = (
        df["cluster"]
        .fillna("")
        .astype(str)
        .str.strip()
        .replace("", "Sem área")
        .str.title()
    )
    counts = clusters.value_counts().rename_axis("cluster").reset_index(name="count")

    fig = px.pie(
        counts,
        names="cluster",
        values="count",
        title="Colaboradores por Área",
        color_discrete_sequence=BLUE_PALETTE[::-1],
    )
    return _transparent(fig, showlegend=True)


# --------------------------------------------------------
# BAR CHART: Hours bank balance per cluster
# --------------------------------------------------------
def balance_by_cluster(balances) -> pd.DataFrame:
    if not balances:
        return pd.DataFrame(columns=["cluster", "horas"])
    df = pd.DataFrame(balances)
    out = (
        df.groupby("cluster", dropna=False)["bank_balance"]
        .sum()
        .div(3600)
        .round(1)
        .rename("horas")
        .reset_index()
        .sort_values("horas", ascending=False)
    )
    return out


def chart_balance_by_cluster(balances):
    df = balance_by_cluster(balances)
    if df.empty:
        return None

    df["status"] = [balance_status(h * 3600) for h in df["horas"]]
    fig = px.bar(
        df,
        x="cluster",
        y="horas",
        text="horas",
        color="status",
        color_discrete_map=BALANCE_PALETTE,
        title="Saldo de Banco de Horas por Área (h)",
    )
    fig.update_traces(textposition="outside", cliponaxis=False)
    return _transparent(fig, showlegend=False, xaxis_title="", yaxis_title="Horas")


# --------------------------------------------------------
# STACKED BAR: Daily presence from the schedule grid
# --------------------------------------------------------
def chart_presence(presence: pd.DataFrame):
    if presence is None or presence.empty:
        return None

    fig = go.Figure()
    fig.add_trace(go.Bar(x=presence["dia"], y=presence["presentes"], name="Presentes",
                         marker_color=PRESENCE_COLOR))
    fig.add_trace(go.Bar(x=presence["dia"], y=presence["ausentes"], name="Ausentes",
                         marker_color=ABSENCE_COLOR))
    return _transparent(
        fig,
        barmode="stack",
        title="Presença diária planejada",
        xaxis=dict(title="Dia", type="category"),
        yaxis=dict(title="Colaboradores", dtick=1, rangemode="tozero"),
    )


# --------------------------------------------------------
# GANTT: Vacation periods
# --------------------------------------------------------
def chart_vacation_gantt(periods, names: dict):
    if not periods:
        return None

    df = pd.DataFrame([
        {
            "Colaborador": names.get(p["employee_id"], str(p["employee_id"])),
            "Início": pd.Timestamp(p["start"]),
            # timeline end is exclusive
            "Fim": pd.Timestamp(p["end"]) + pd.Timedelta(days=1),
            "Status": SCHEDULE_STATUS_LABELS.get(p["status"], p["status"]),
            "status": p["status"],
        }
        for p in periods
    ])

    fig = px.timeline(
        df,
        x_start="Início",
        x_end="Fim",
        y="Colaborador",
        color="status",
        hover_data={"Status": True, "status": False},
        color_discrete_map=VACATION_PALETTE,
        title="Planejamento de Férias",
    )
    fig.update_yaxes(autorange="reversed")
    return _transparent(fig, showlegend=False)


# --------------------------------------------------------
# LINE CHART: Collaborators on vacation per day
# --------------------------------------------------------
def chart_vacations_per_day(periods, selected_range=None):
    if not periods:
        return None

    days = [
        d
        for p in periods
        for d in pd.date_range(p["start"], p["end"], freq="D")
    ]
    per_day = (
        pd.Series(1, index=pd.DatetimeIndex(days))
        .groupby(level=0)
        .sum()
        .rename_axis("dia")
        .reset_index(name="em_ferias")
    )

    if selected_range:
        sel_start, sel_end = selected_range
        per_day = per_day[(per_day["dia"].dt.date >= sel_start) & (per_day["dia"].dt.date <= sel_end)]

    if per_day.empty:
        return None

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=per_day["dia"],
            y=per_day["em_ferias"],
            mode="lines+markers",
            name="Em férias",
            line=dict(color=PRESENCE_COLOR, width=3),
            marker=dict(size=8, color=PRESENCE_COLOR),
        )
    )

    # Holidays + weekends shading
    weekends = {d.date() for d in per_day["dia"] if d.weekday() >= 5}
    first, last = per_day["dia"].min().date(), per_day["dia"].max().date()
    holidays = {d for d in HOLIDAYS if first <= d <= last}

    for hday in sorted(weekends | holidays):
        x0 = datetime.datetime(hday.year, hday.month, hday.day) - datetime.timedelta(hours=12)
        fig.add_vrect(
            x0=x0, x1=x0 + datetime.timedelta(days=1),
            fillcolor="rgba(19, 127, 236, 0.12)",
            layer="below",
            line_width=0,
        )

    return _transparent(
        fig,
        title="Colaboradores em férias por dia",
        xaxis=dict(title="Dias", tickangle=-45, showgrid=False),
        yaxis=dict(title="Colaboradores", dtick=1, rangemode="tozero"),
    )


# --------------------------------------------------------
# BAR CHART: Headcount per manager
# --------------------------------------------------------
def chart_headcount(headcount):
    if not headcount:
        return None

    df = pd.DataFrame(headcount).sort_values("headcount", ascending=False)
    fig = px.bar(
        df,
        x="gestor",
        y="headcount",
        text="headcount",
        color="area",
        color_discrete_sequence=BLUE_PALETTE[1:],
        title="Headcount por Gestor",
    )
    fig.update_traces(textposition="outside", cliponaxis=False)
    return _transparent(fig, xaxis_title="", yaxis=dict(title="Liderados", dtick=1, rangemode="tozero"))


# --------------------------------------------------------
# BAR CHART: Status distribution (certificates, feedbacks...)
# --------------------------------------------------------
def chart_status_counts(df, title):
    if df.empty or "status" not in df.columns:
        return None

    counts = df["status"].value_counts().rename_axis("status").reset_index(name="count")
    fig = px.bar(
        counts,
        x="status",
        y="count",
        text="count",
        title=title,
        color="status",
        color_discrete_sequence=BLUE_PALETTE[1:],
    )
    fig.update_traces(textposition="outside", cliponaxis=False)
    return _transparent(fig, showlegend=False, yaxis=dict(dtick=1, tick0=0, rangemode="tozero"))
