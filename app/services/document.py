"""
Monthly register document: header, painted calendar and guest cards.

The document is a single fixed-size HTML page (A4 at 96 dpi). In `print`
intent it carries one script that opens the print dialog and closes the
window afterwards; in `pdf` intent it carries none and is handed to the
capture pipeline, which looks for the `#booking-document` root.
"""
from __future__ import annotations

import enum
import html as htmlmod
import re
import unicodedata
from typing import Iterable

from app.services.calendar_paint import CalendarCell, CellKind, MonthPaint, assign_colors, paint_month
from app.services.dates import format_long_date, month_name, nights_between
from app.services.grouping import export_order
from app.services.stay_filter import sort_by_recency

PAGE_WIDTH_PX = 794
PAGE_HEIGHT_PX = 1123
DOCUMENT_ROOT_ID = "booking-document"

WEEKDAY_LABELS = ("Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom")

PRINT_SCRIPT = (
    "<script>"
    "window.addEventListener('load',function(){window.print();});"
    "window.addEventListener('afterprint',function(){window.close();});"
    "</script>"
)


class DocumentIntent(str, enum.Enum):
    print = "print"
    pdf = "pdf"


def esc(value) -> str:
    if value is None:
        return ""
    return htmlmod.escape(str(value), quote=True)


def _split(first: str, second: str) -> str:
    return f"linear-gradient(135deg, {first} 0%, {first} 50%, {second} 50%, {second} 100%)"


def cell_background(cell: CalendarCell) -> str:
    """CSS background for a painted cell."""
    if cell.kind == CellKind.turnover:
        return _split(cell.colors[0], cell.colors[1])
    if cell.kind == CellKind.departure:
        # Morning-only presence: departing colour in the upper-left half
        return _split(cell.colors[0], "#FFFFFF")
    if cell.kind == CellKind.occupied:
        if len(cell.colors) == 1:
            return cell.colors[0]
        step = 100 / len(cell.colors)
        stops = []
        for i, color in enumerate(cell.colors):
            stops.append(f"{color} {i * step:.2f}%")
            stops.append(f"{color} {(i + 1) * step:.2f}%")
        return f"linear-gradient(to right, {', '.join(stops)})"
    return "#FFFFFF"


_STYLE = f"""
<style>
@page{{size:A4;margin:0}}
*{{box-sizing:border-box}}
body{{margin:0;font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,sans-serif;color:#1E293B;background:#fff}}
#{DOCUMENT_ROOT_ID}{{width:{PAGE_WIDTH_PX}px;min-height:{PAGE_HEIGHT_PX}px;padding:28px 32px;background:#fff}}
header h1{{margin:0;font-size:24px}}
header .meta{{margin-top:4px;color:#64748B;font-size:13px}}
table.cal{{width:100%;border-collapse:collapse;margin-top:16px;table-layout:fixed}}
table.cal th{{font-size:11px;color:#64748B;font-weight:600;padding:4px 0}}
table.cal td{{height:44px;border:1px solid #E2E8F0;vertical-align:top;padding:3px 5px;font-size:12px;font-weight:600}}
table.cal td span{{background:rgba(255,255,255,.8);border-radius:3px;padding:0 3px}}
table.cal td.outside{{opacity:.35;filter:grayscale(60%)}}
p.caption{{font-size:11px;color:#64748B;margin:6px 0 14px}}
.cards{{display:flex;flex-wrap:wrap;gap:8px}}
.card{{width:calc(50% - 4px);border:1px solid #E2E8F0;border-radius:6px;padding:8px 10px;font-size:11px;line-height:1.45}}
.card h2{{font-size:13px;margin:0 0 4px;display:flex;align-items:center;gap:6px}}
.dot{{display:inline-block;width:10px;height:10px;border-radius:50%}}
.card .lbl{{color:#64748B}}
.empty{{color:#64748B;font-size:13px}}
@media print{{#{DOCUMENT_ROOT_ID}{{min-height:auto}}}}
</style>
"""

CAPTION = (
    "Cada cor corresponde a um hóspede. Dia com diagonal de duas cores: saída e entrada no mesmo dia. "
    "Diagonal com metade em branco: dia de saída. Faixas verticais: estadias em simultâneo. "
    "Dias fora do mês aparecem esbatidos."
)


def _calendar_html(paint: MonthPaint) -> str:
    rows = ["<table class=cal><thead><tr>"]
    rows.extend(f"<th>{label}</th>" for label in WEEKDAY_LABELS)
    rows.append("</tr></thead><tbody>")
    for week in paint.weeks():
        rows.append("<tr>")
        for cell in week:
            cls = f"{cell.kind.value}{' outside' if cell.outside_month else ''}"
            rows.append(
                f"<td class=\"{cls}\" data-date=\"{cell.day.isoformat()}\" "
                f"style=\"background:{cell_background(cell)}\"><span>{cell.day.day}</span></td>"
            )
        rows.append("</tr>")
    rows.append("</tbody></table>")
    return "".join(rows)


def _card_html(stay, color: str) -> str:
    nights = nights_between(getattr(stay, "check_in", None), getattr(stay, "check_out", None)) or stay.nights_count
    notes = getattr(stay, "notes", None)
    lines = [
        f"<div class=card data-stay-id=\"{int(stay.id)}\">",
        f"<h2><span class=dot style=\"background:{color}\"></span>{esc(stay.guest_name)}</h2>",
        f"<div><span class=lbl>Check-in:</span> {esc(format_long_date(getattr(stay, 'check_in', None)))}"
        f" &nbsp; <span class=lbl>Check-out:</span> {esc(format_long_date(getattr(stay, 'check_out', None)))}</div>",
        f"<div><span class=lbl>Telefone:</span> {esc(stay.guest_phone)} &nbsp; <span class=lbl>Email:</span> {esc(stay.guest_email)}</div>",
        f"<div><span class=lbl>Morada:</span> {esc(stay.guest_address)}</div>",
        f"<div><span class=lbl>Noites:</span> {esc(nights)} &nbsp; <span class=lbl>Pessoas:</span> {esc(stay.people_count)}"
        f" &nbsp; <span class=lbl>Roupa:</span> {esc(getattr(stay, 'linen', None) or '-')}</div>",
    ]
    if notes:
        lines.append(f"<div><span class=lbl>Notas:</span> {esc(notes)}</div>")
    lines.append("</div>")
    return "".join(lines)


def build_document(
    stays: Iterable,
    *,
    year: int,
    month: int,
    apartment_label: str | None = None,
    intent: DocumentIntent = DocumentIntent.pdf,
    colors: dict[int, str] | None = None,
) -> str:
    """Render the monthly register page. `stays` should already be filtered for (year, month)."""
    ordered = export_order(stays)
    if colors is None:
        colors = assign_colors(ordered)
    paint = paint_month(ordered, year, month, colors=colors)
    # Cards follow the in-month order of the grouped review: newest first
    cards = sort_by_recency(ordered)

    title = f"{month_name(month).capitalize()} {year}"
    label = apartment_label or "Todos os apartamentos"
    count = len(ordered)
    count_label = "1 registo" if count == 1 else f"{count} registos"

    parts = [
        "<!doctype html><html lang=\"pt\"><head><meta charset=\"utf-8\">",
        f"<title>{esc(title)} - {esc(label)}</title>",
        _STYLE,
        "</head><body>",
        f"<main id=\"{DOCUMENT_ROOT_ID}\" data-intent=\"{DocumentIntent(intent).value}\">",
        f"<header><h1>{esc(title)}</h1><div class=meta>{esc(label)} &middot; {count_label}</div></header>",
        _calendar_html(paint),
        f"<p class=caption>{CAPTION}</p>",
        "<section class=cards>",
    ]
    if cards:
        parts.extend(_card_html(stay, colors.get(int(stay.id), "#94A3B8")) for stay in cards)
    else:
        parts.append("<p class=empty>Sem registos para este período.</p>")
    parts.append("</section></main>")
    if DocumentIntent(intent) == DocumentIntent.print:
        parts.append(PRINT_SCRIPT)
    parts.append("</body></html>")
    return "".join(parts)


def _slug(value: str) -> str:
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_value.lower()).strip("-")


def document_filename(year: int, month: int, apartment_label: str | None = None) -> str:
    slug = _slug(apartment_label or "") or "todos"
    return f"registo-{slug}-{year:04d}-{month:02d}.pdf"
