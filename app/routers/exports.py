"""Monthly calendar, print page and PDF export."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response
from app.config import get_settings
from app.dependencies import get_store, http_error
from app.errors import BookingError, ValidationError
from app.schemas.export import CalendarCellResponse, MonthPaintResponse, SaveOutcomeResponse
from app.schemas.filters import StayFilter
from app.services.calendar_paint import assign_colors, paint_month
from app.services.dates import month_name
from app.services.document import DocumentIntent, build_document, document_filename
from app.services.pdf_capture import (
    FileSaveTarget,
    RenderSurface,
    SAVE_METHOD_DOWNLOAD,
    SeleniumSurface,
    capture_pdf,
    save_pdf,
)
from app.services.stay_filter import apply_filter, validate_filter
from app.services.store import StayStore

router = APIRouter(prefix="/exports", tags=["exports"])


def get_render_surface() -> RenderSurface:
    return SeleniumSurface(browser=get_settings().render_browser)


def get_save_target() -> FileSaveTarget:
    return FileSaveTarget(get_settings().export_dir)


def _month_selection(
    store: StayStore,
    apartment_id: str | None,
    year: str | None,
    month: str | None,
) -> tuple[StayFilter, list, str | None]:
    flt = validate_filter({"apartment_id": apartment_id, "year": year, "month": month})
    if flt.year is None:
        raise ValidationError("year", "Escolhe o ano a exportar.")
    if flt.month is None:
        raise ValidationError("month", "Escolhe o mês a exportar.")
    label = store.get_apartment(flt.apartment_id).name if flt.apartment_id else None
    stays = apply_filter(store.list_stays(apartment_id=flt.apartment_id), flt)
    return flt, stays, label


@router.get("/calendar", response_model=MonthPaintResponse)
def month_calendar(
    apartment_id: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    store: StayStore = Depends(get_store),
):
    """Paint map for the on-screen calendar (same colours as the exported document)."""
    try:
        flt, stays, _ = _month_selection(store, apartment_id, year, month)
    except BookingError as e:
        raise http_error(e, "Erro ao carregar calendário.")
    paint = paint_month(stays, flt.year, flt.month)
    return MonthPaintResponse(
        year=paint.year,
        month=paint.month,
        grid_start=paint.grid_start,
        grid_end=paint.grid_end,
        colors=paint.colors,
        cells=[
            CalendarCellResponse(
                day=c.day,
                kind=c.kind.value,
                colors=list(c.colors),
                outside_month=c.outside_month,
                occupants=list(c.occupants),
                arrivals=list(c.arrivals),
                departures=list(c.departures),
            )
            for c in paint.cells
        ],
    )


@router.get("/print", response_class=HTMLResponse)
def print_document(
    apartment_id: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    store: StayStore = Depends(get_store),
):
    """Document page that opens the print dialog on load."""
    try:
        flt, stays, label = _month_selection(store, apartment_id, year, month)
    except BookingError as e:
        raise http_error(e, "Erro ao preparar impressão.")
    html = build_document(stays, year=flt.year, month=flt.month, apartment_label=label, intent=DocumentIntent.print)
    return HTMLResponse(content=html)


@router.post("/pdf")
def export_pdf(
    apartment_id: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    store: StayStore = Depends(get_store),
    surface: RenderSurface = Depends(get_render_surface),
    target: FileSaveTarget = Depends(get_save_target),
):
    """Render the month to a one-page A4 PDF, then save it or return it as a download."""
    settings = get_settings()
    try:
        flt, stays, label = _month_selection(store, apartment_id, year, month)
        colors = assign_colors(stays)
        html = build_document(
            stays, year=flt.year, month=flt.month, apartment_label=label,
            intent=DocumentIntent.pdf, colors=colors,
        )
        title = f"{month_name(flt.month).capitalize()} {flt.year}"
        pdf_bytes = capture_pdf(html, surface, load_timeout=settings.render_load_timeout_seconds, title=title)
        filename = document_filename(flt.year, flt.month, label)
        outcome = save_pdf(pdf_bytes, filename, target=target)
    except BookingError as e:
        raise http_error(e, "Erro ao exportar PDF.")

    if outcome.method == SAVE_METHOD_DOWNLOAD:
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="{outcome.filename}"',
                "X-Save-Method": outcome.method,
            },
        )
    return SaveOutcomeResponse(
        method=outcome.method,
        filename=outcome.filename,
        message=outcome.message,
        location=outcome.location,
    )
