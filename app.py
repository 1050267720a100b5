# app.py
# -----------------------------------------------
# ⏱️ Controle de Horas (Streamlit)
# -----------------------------------------------
# Requires: streamlit, sqlmodel, pandas, reportlab, openpyxl (psycopg2-binary for Postgres)
# Run: streamlit run app.py

import os

import pandas as pd
import streamlit as st

import config
from domain import CompensationPolicy
from exports import editor_dataframe, export_filename, to_csv_bytes, to_excel_bytes, to_json_bytes, to_pdf_bytes
from logger import get_logger
from repository import WorkDayRepository
from services import DayHoursCalculator, PeriodAggregator, classify_balance, working_days_in_month
from store import RecordStore
from sync import Heartbeat, LocalBackup, SyncedStorage
from trends import TrendEngine, buckets_to_dataframe
from utils import brl, format_minutes, month_label, month_range, yyyymm_to_tuple

log = get_logger("app")

st.set_page_config(page_title=config.APP_TITLE, page_icon="⏱️", layout="wide")

# =========================
# Storage (cached across reruns)
# =========================
if ("RENDER" in os.environ or "SPACE_ID" in os.environ) and config.DB_URL.startswith("sqlite"):
    st.error("DATABASE_URL is missing (Postgres). Set it in the hosting environment.")

@st.cache_resource
def get_storage(url: str) -> SyncedStorage:
    return SyncedStorage(WorkDayRepository(url), LocalBackup(config.BACKUP_FILE))

@st.cache_resource
def get_heartbeat(url: str) -> Heartbeat:
    hb = Heartbeat(get_storage(url).repo.ping, interval=config.HEARTBEAT_INTERVAL_S)
    hb.start()
    return hb

storage = get_storage(config.DB_URL)
heartbeat = get_heartbeat(config.DB_URL)

def _save(records):
    if not storage.save_records(records):
        st.session_state["_flash_error"] = "Erro ao salvar dados. Uma cópia foi guardada localmente."

if "store" not in st.session_state:
    st.session_state["store"] = RecordStore(storage.load_records())
store: RecordStore = st.session_state["store"]
store.on_change = _save

# =========================
# Policy (settings blob)
# =========================
settings = storage.load_settings()
policy = CompensationPolicy.from_settings(settings, default=config.DEFAULT_POLICY)
calculator = DayHoursCalculator(policy)
aggregator = PeriodAggregator(calculator)
trends = TrendEngine(calculator)

# =========================
# Page
# =========================
st.title(f"⏱️ {config.APP_TITLE}")

err = st.session_state.pop("_flash_error", None)
if err:
    st.error(err)

with st.sidebar:
    st.caption("● Conectado" if heartbeat.is_alive else "● Desconectado")
    st.subheader("Jornada e salário")
    std = st.number_input("Jornada padrão (min)", min_value=0, value=policy.standard_daily_minutes, step=1)
    sat = st.number_input("Jornada de sábado (min)", min_value=0, value=policy.saturday_daily_minutes, step=1)
    base = st.number_input("Salário base (R$)", min_value=0.0, value=float(policy.hourly_base), step=10.0)
    mult = st.number_input("Multiplicador hora extra", min_value=0.0, value=float(policy.overtime_multiplier), step=0.1)
    hours = st.number_input("Horas mensais", min_value=1.0, value=float(policy.billing_monthly_hours), step=1.0)
    if st.button("Salvar configurações", use_container_width=True):
        new_policy = CompensationPolicy(int(std), int(sat), float(base), float(mult), float(hours))
        storage.save_settings(new_policy.to_settings())
        st.rerun()

# =========================
# Month filter
# =========================
months = store.months()
current_filter = st.selectbox(
    "Mês", options=[""] + months,
    format_func=lambda m: "Todos os meses" if not m else month_label(m),
)
visible = store.filtered(current_filter)

# =========================
# ➕ Add / table
# =========================
c1, c2 = st.columns([1, 1])
with c1:
    if st.button("➕ Adicionar dia", use_container_width=True):
        store.add_day(config.today_local())
        st.rerun()
with c2:
    if st.button("🗑️ Limpar todos os dados", use_container_width=True):
        st.session_state["_confirm_clear"] = True
if st.session_state.get("_confirm_clear"):
    st.warning("Tem certeza que deseja limpar todos os dados? Esta ação não pode ser desfeita.")
    if st.button("Confirmar limpeza"):
        store.clear()
        st.session_state["_confirm_clear"] = False
        st.rerun()

st.caption(f"{len(visible)} dias")

if visible:
    df_view = editor_dataframe(visible, calculator)
    edited = st.data_editor(
        df_view,
        column_config={
            "Data": st.column_config.DateColumn(format="DD/MM/YYYY"),
            "Entrada": st.column_config.TextColumn(help="HH:MM"),
            "Saída Intervalo": st.column_config.TextColumn(help="HH:MM"),
            "Retorno Intervalo": st.column_config.TextColumn(help="HH:MM"),
            "Saída Final": st.column_config.TextColumn(help="HH:MM"),
            "Total": st.column_config.TextColumn(disabled=True),
            "Extras": st.column_config.TextColumn(disabled=True),
            "Negativas": st.column_config.TextColumn(disabled=True),
        },
        use_container_width=True,
        num_rows="fixed",
        key=f"editor_{current_filter or 'all'}_{st.session_state.get('_editor_rev', 0)}",
    )

    field_map = {
        "Entrada": "clock_in", "Saída Intervalo": "break_out", "Retorno Intervalo": "break_in",
        "Saída Final": "clock_out", "Sábado": "is_saturday",
    }
    changed = False
    for rid, row in edited.iterrows():
        orig = df_view.loc[rid]
        for col, field in field_map.items():
            new = row[col]
            if field != "is_saturday" and pd.isna(new):
                new = ""
            if new != orig[col]:
                store.update_field(int(rid), field, new)
                changed = True
        if not pd.isna(row["Data"]):
            new_date = pd.Timestamp(row["Data"]).date()
            if new_date != orig["Data"]:
                store.update_field(int(rid), "date", new_date.isoformat())
                changed = True
    if changed:
        # new widget key so positional edits are not replayed on re-sorted rows
        st.session_state["_editor_rev"] = st.session_state.get("_editor_rev", 0) + 1
        st.toast("Salvo.", icon="✅")
        st.rerun()

    # Reorder / remove
    labels = {r.id: f"{r.date} · {r.clock_in or '--:--'}–{r.clock_out or '--:--'}" for r in visible}
    selected = st.selectbox("Dia selecionado", options=list(labels), format_func=labels.get)
    b1, b2, b3 = st.columns(3)
    if b1.button("↑ Mover para cima", use_container_width=True):
        store.move_up(selected, current_filter)
        st.rerun()
    if b2.button("↓ Mover para baixo", use_container_width=True):
        store.move_down(selected, current_filter)
        st.rerun()
    if b3.button("Remover", use_container_width=True):
        store.remove(selected)
        st.rerun()
else:
    st.info("Sem registros.")

# =========================
# Summary
# =========================
st.subheader("Resumo")
summary = aggregator.sum_hours(visible)
m1, m2, m3, m4 = st.columns(4)
m1.metric("Total de horas", format_minutes(summary.total))
m2.metric("Horas extras", format_minutes(summary.overtime))
m3.metric("Horas negativas", format_minutes(summary.deficit))
m4.metric("Valor das horas extras", brl(aggregator.overtime_value(summary.overtime)))

balance = classify_balance(summary.overtime, summary.deficit)
{"credit": st.success, "debt": st.warning, "even": st.info}[balance.kind.value](
    f"{balance.label} — {balance.hint}"
)

if current_filter:
    y, m = yyyymm_to_tuple(current_filter)
    first, last = month_range(current_filter)
    wd = working_days_in_month(y, m)
    st.caption(
        f"{first:%d/%m} a {last:%d/%m}: {wd} dias úteis · esperado {format_minutes(aggregator.expected_minutes_for_month(y, m))} · "
        f"média diária {format_minutes(int(summary.average_minutes))}"
    )

# =========================
# 📅 Weekly summary
# =========================
with st.expander("📅 Resumo semanal"):
    for (yy, ww), s in sorted(aggregator.sum_by_week(visible).items(), reverse=True):
        st.markdown(
            f"- **{yy}-W{ww:02d}**: {format_minutes(s.total)} · extras {format_minutes(s.overtime)} · "
            f"negativas {format_minutes(s.deficit)}"
        )

# =========================
# 📈 Trends
# =========================
st.subheader("📈 Tendências")
buckets = trends.monthly_series(store.records, config.TREND_MONTHS, today=config.today_local())
chart_df = buckets_to_dataframe(buckets).set_index("Rótulo")
st.bar_chart(chart_df[["Horas extras (h)", "Horas negativas (h)"]])
for insight in trends.insights(buckets):
    st.markdown(f"- {insight.message}")

# =========================
# ⬇️ Exports
# =========================
st.subheader("⬇️ Exportar")
today = config.today_local()
title = f"{config.APP_TITLE} — {month_label(current_filter) if current_filter else 'Todos os meses'}"
e1, e2, e3, e4 = st.columns(4)
e1.download_button("Excel", data=to_excel_bytes(visible, aggregator),
                   file_name=export_filename("xlsx", current_filter, today),
                   mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                   use_container_width=True)
e2.download_button("CSV", data=to_csv_bytes(visible, aggregator),
                   file_name=export_filename("csv", current_filter, today), mime="text/csv",
                   use_container_width=True)
e3.download_button("JSON", data=to_json_bytes(visible, aggregator),
                   file_name=export_filename("json", current_filter, today), mime="application/json",
                   use_container_width=True)
e4.download_button("PDF", data=to_pdf_bytes(visible, aggregator, title),
                   file_name=export_filename("pdf", current_filter, today), mime="application/pdf",
                   use_container_width=True)
