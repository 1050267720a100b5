# exports.py
from __future__ import annotations

import io
import json
from datetime import date
from typing import Iterable, List

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain import Balance, BalanceKind, DayRecord
from services import DayHoursCalculator, PeriodAggregator, classify_balance
from utils import brl, format_minutes, parse_iso_date

WEEKDAYS = ["Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado", "Domingo"]

COLUMNS = ["Data", "Dia", "Entrada", "Saída Intervalo", "Retorno Intervalo", "Saída Final",
           "Total Horas", "Horas Extras", "Horas Negativas", "Sábado"]

EDITOR_COLUMNS = ["Data", "Entrada", "Saída Intervalo", "Retorno Intervalo", "Saída Final", "Sábado",
                  "Total", "Extras", "Negativas"]


def records_to_dataframe(records: Iterable[DayRecord], aggregator: PeriodAggregator) -> pd.DataFrame:
    rows = []
    for r in records:
        h = aggregator.calculator.calculate_day_hours(r)
        d = parse_iso_date(r.date)
        rows.append({
            "Data": r.date,
            "Dia": WEEKDAYS[d.weekday()] if d else "",
            "Entrada": r.clock_in,
            "Saída Intervalo": r.break_out,
            "Retorno Intervalo": r.break_in,
            "Saída Final": r.clock_out,
            "Total Horas": format_minutes(h.total),
            "Horas Extras": format_minutes(h.overtime) if h.overtime > 0 else "",
            "Horas Negativas": format_minutes(h.deficit) if h.deficit > 0 else "",
            "Sábado": "Sim" if r.is_saturday else "Não",
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def editor_dataframe(records: Iterable[DayRecord], calculator: DayHoursCalculator) -> pd.DataFrame:
    """Editable table indexed by record id; malformed dates show as empty cells."""
    rows = []
    for r in records:
        h = calculator.calculate_day_hours(r)
        rows.append({
            "id": r.id,
            "Data": parse_iso_date(r.date),
            "Entrada": r.clock_in,
            "Saída Intervalo": r.break_out,
            "Retorno Intervalo": r.break_in,
            "Saída Final": r.clock_out,
            "Sábado": r.is_saturday,
            "Total": format_minutes(h.total),
            "Extras": format_minutes(h.overtime) if h.overtime else "-",
            "Negativas": format_minutes(h.deficit) if h.deficit else "-",
        })
    return pd.DataFrame(rows, columns=["id", *EDITOR_COLUMNS]).set_index("id")


def summary_rows(records: List[DayRecord], aggregator: PeriodAggregator) -> tuple[List[tuple[str, str]], Balance]:
    """Label/value pairs for the period plus its balance classification."""
    s = aggregator.sum_hours(records)
    rows = [
        ("Total de horas", format_minutes(s.total)),
        ("Horas extras", format_minutes(s.overtime)),
        ("Horas negativas", format_minutes(s.deficit)),
        ("Dias trabalhados", str(s.days_worked)),
        ("Valor das horas extras", brl(aggregator.overtime_value(s.overtime))),
    ]
    return rows, classify_balance(s.overtime, s.deficit)


def export_filename(ext: str, month: str = "", today: date | None = None) -> str:
    suffix = f"-{month}" if month else ""
    stamp = (today or date.today()).isoformat()
    return f"controle-horas{suffix}-{stamp}.{ext}"


def to_csv_bytes(records: Iterable[DayRecord], aggregator: PeriodAggregator) -> bytes:
    df = records_to_dataframe(records, aggregator)
    return df.to_csv(index=False).encode("utf-8-sig")


def to_excel_bytes(records: Iterable[DayRecord], aggregator: PeriodAggregator) -> bytes:
    df = records_to_dataframe(records, aggregator)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Controle de Horas")
    return buf.getvalue()


def to_json_bytes(records: Iterable[DayRecord], aggregator: PeriodAggregator) -> bytes:
    records = list(records)
    s = aggregator.sum_hours(records)
    balance = classify_balance(s.overtime, s.deficit)
    payload = {
        "workDays": [r.to_dict() for r in records],
        "summary": {
            "totalMinutes": s.total,
            "overtimeMinutes": s.overtime,
            "deficitMinutes": s.deficit,
            "daysWorked": s.days_worked,
            "averageMinutes": round(s.average_minutes, 2),
            "overtimeValue": round(aggregator.overtime_value(s.overtime), 2),
            "balance": {"kind": balance.kind.value, "minutes": balance.minutes, "label": balance.label},
        },
    }
    return json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")


# Balance box tints, keyed by BalanceKind
BALANCE_COLORS = {
    BalanceKind.CREDIT: colors.HexColor("#E6F4EA"),
    BalanceKind.DEBT: colors.HexColor("#FDECEA"),
    BalanceKind.EVEN: colors.HexColor("#EEF1F6"),
}


def dataframe_to_pdf(df: pd.DataFrame, title: str, summary: List[tuple[str, str]] | None = None,
                     balance: Balance | None = None) -> bytes:
    """Landscape A4 with the day table, a label/value summary grid and a tinted balance row."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), topMargin=24, bottomMargin=24, leftMargin=24, rightMargin=24)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(name="TitleCentered", parent=styles["Title"], alignment=TA_CENTER)
    balance_style = ParagraphStyle(
        name="Balance", parent=styles["Normal"], alignment=TA_CENTER, fontSize=11, leading=14
    )
    story = [Paragraph(title, title_style), Spacer(1, 8)]
    if df.empty:
        story.append(Paragraph("Sem dados para exibir.", styles["Normal"]))
    else:
        data = [list(df.columns)] + df.astype(str).values.tolist()
        table = Table(data, repeatRows=1, hAlign="CENTER")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F5F5F7")),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#E0E0E0")),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        story.append(table)

    rows: list = [[label, value] for label, value in (summary or [])]
    box_style = [
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.HexColor("#E0E0E0")),
        ("BOX", (0, 0), (-1, -1), 0.6, colors.HexColor("#C7CCD6")),
    ]
    if balance is not None:
        text = f"<b>{balance.label}</b><br/>{balance.hint}"
        rows.append([Paragraph(text, balance_style), ""])
        last = len(rows) - 1
        box_style += [
            ("SPAN", (0, last), (1, last)),
            ("BACKGROUND", (0, last), (1, last), BALANCE_COLORS[balance.kind]),
            ("TOPPADDING", (0, last), (1, last), 8),
            ("BOTTOMPADDING", (0, last), (1, last), 8),
        ]
    if rows:
        story.append(Spacer(1, 12))
        width = min(420, 0.5 * doc.width)
        box = Table(rows, colWidths=[width * 0.6, width * 0.4], hAlign="CENTER")
        box.setStyle(TableStyle(box_style))
        story.append(box)

    def draw_page_border(canvas, doc_obj):
        canvas.saveState()
        w, h = doc_obj.pagesize
        canvas.setStrokeColor(colors.HexColor("#C7CCD6"))
        canvas.setLineWidth(0.8)
        margin = 12
        canvas.rect(margin, margin, w - 2*margin, h - 2*margin)
        canvas.restoreState()

    doc.build(story, onFirstPage=draw_page_border, onLaterPages=draw_page_border)
    return buf.getvalue()


def to_pdf_bytes(records: Iterable[DayRecord], aggregator: PeriodAggregator, title: str) -> bytes:
    records = list(records)
    df = records_to_dataframe(records, aggregator)
    rows, balance = summary_rows(records, aggregator)
    return dataframe_to_pdf(df, title, rows, balance)
