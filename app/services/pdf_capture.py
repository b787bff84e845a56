"""
PDF capture pipeline.

mount HTML on an off-screen surface -> wait for load -> locate the document
root -> rasterize -> tear down, then place the bitmap on one A4 page with
reportlab. The surface is always torn down, also when a step fails.

Saving prefers a real save location (the configured export directory) and
falls back to serving the file as a download; the outcome says which one
happened.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.errors import RenderPipelineError, SaveError, STAGE_RASTERIZE, STAGE_ROOT, STAGE_SURFACE
from app.services.document import DOCUMENT_ROOT_ID, PAGE_HEIGHT_PX, PAGE_WIDTH_PX

log = logging.getLogger("uvicorn.error")

SUPERSAMPLE = 2
PAGE_MARGIN = 10 * mm
DEFAULT_LOAD_TIMEOUT = 8.0

SAVE_METHOD_SAVED = "saved"
SAVE_METHOD_DOWNLOAD = "download"


class RenderSurface:
    """Off-screen rendering capability. Implementations differ per platform."""

    def mount(self, html: str):
        raise NotImplementedError

    def wait_until_loaded(self, handle, timeout: float) -> None:
        raise NotImplementedError

    def find_root(self, handle, root_id: str):
        """Root element, or None when it is not in the rendered page."""
        raise NotImplementedError

    def rasterize(self, handle, root) -> bytes:
        """PNG bytes of `root` at SUPERSAMPLE device pixels per CSS pixel."""
        raise NotImplementedError

    def teardown(self, handle) -> None:
        raise NotImplementedError


@dataclass
class _BrowserHandle:
    driver: object
    path: str


class SeleniumSurface(RenderSurface):
    """Headless browser surface sized to the fixed page box."""

    def __init__(self, browser: str = "firefox", width: int = PAGE_WIDTH_PX, height: int = PAGE_HEIGHT_PX):
        self.browser = (browser or "firefox").strip().lower()
        self.width = width
        self.height = height

    def _start_driver(self):
        from selenium import webdriver

        if self.browser == "chrome":
            options = webdriver.ChromeOptions()
            options.add_argument("--headless=new")
            options.add_argument(f"--window-size={self.width},{self.height}")
            options.add_argument(f"--force-device-scale-factor={SUPERSAMPLE}")
            options.add_argument("--hide-scrollbars")
            return webdriver.Chrome(options=options)
        options = webdriver.FirefoxOptions()
        options.add_argument("--headless")
        options.set_preference("layout.css.devPixelsPerPx", str(SUPERSAMPLE))
        driver = webdriver.Firefox(options=options)
        driver.set_window_size(self.width, self.height)
        return driver

    def mount(self, html: str) -> _BrowserHandle:
        fd, path = tempfile.mkstemp(suffix=".html", prefix="registo-")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(html)
        try:
            driver = self._start_driver()
        except Exception:
            os.unlink(path)
            raise
        handle = _BrowserHandle(driver=driver, path=path)
        try:
            driver.get(Path(path).as_uri())
        except Exception:
            self.teardown(handle)
            raise
        return handle

    def wait_until_loaded(self, handle: _BrowserHandle, timeout: float) -> None:
        from selenium.common.exceptions import TimeoutException
        from selenium.webdriver.support.ui import WebDriverWait

        try:
            WebDriverWait(handle.driver, timeout).until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )
        except TimeoutException:
            # Some embedded resources never report completion; render what is there
            log.warning("Export surface did not finish loading within %.1fs; continuing", timeout)

    def find_root(self, handle: _BrowserHandle, root_id: str):
        from selenium.webdriver.common.by import By

        found = handle.driver.find_elements(By.ID, root_id)
        return found[0] if found else None

    def rasterize(self, handle: _BrowserHandle, root) -> bytes:
        return root.screenshot_as_png

    def teardown(self, handle: _BrowserHandle) -> None:
        try:
            handle.driver.quit()
        finally:
            if os.path.exists(handle.path):
                os.unlink(handle.path)


def fit_to_page(
    image_width: float,
    image_height: float,
    page_size: tuple[float, float] = A4,
    margin: float = PAGE_MARGIN,
) -> tuple[float, float, float, float]:
    """(x, y, width, height) of the image scaled uniformly into the printable area and centred."""
    page_w, page_h = page_size
    avail_w = page_w - 2 * margin
    avail_h = page_h - 2 * margin
    scale = min(avail_w / image_width, avail_h / image_height)
    width = image_width * scale
    height = image_height * scale
    return (page_w - width) / 2, (page_h - height) / 2, width, height


def image_to_a4_pdf(png: bytes, title: str | None = None) -> bytes:
    """Single-page, image-only A4 PDF."""
    image = ImageReader(BytesIO(png))
    image_w, image_h = image.getSize()
    x, y, width, height = fit_to_page(image_w, image_h)

    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    if title:
        c.setTitle(title)
    c.drawImage(image, x, y, width=width, height=height)
    c.showPage()
    c.save()
    return buf.getvalue()


def capture_pdf(
    html: str,
    surface: RenderSurface,
    *,
    root_id: str = DOCUMENT_ROOT_ID,
    load_timeout: float = DEFAULT_LOAD_TIMEOUT,
    title: str | None = None,
) -> bytes:
    """Render `html` off-screen and return it as a one-page A4 PDF. Raises RenderPipelineError by stage."""
    try:
        handle = surface.mount(html)
    except Exception as e:
        log.exception("Export surface could not be prepared")
        raise RenderPipelineError(STAGE_SURFACE, f"Rendering surface could not be prepared: {e}") from e

    try:
        try:
            surface.wait_until_loaded(handle, load_timeout)
        except Exception as e:
            raise RenderPipelineError(STAGE_SURFACE, f"Rendering surface failed while loading: {e}") from e

        try:
            root = surface.find_root(handle, root_id)
        except Exception as e:
            raise RenderPipelineError(STAGE_ROOT, f"Document root #{root_id} could not be located: {e}") from e
        if root is None:
            raise RenderPipelineError(STAGE_ROOT, f"Document root #{root_id} not found in rendered page")

        try:
            png = surface.rasterize(handle, root)
        except Exception as e:
            raise RenderPipelineError(STAGE_RASTERIZE, f"Rasterization failed: {e}") from e
        if not png:
            raise RenderPipelineError(STAGE_RASTERIZE, "Rasterization produced an empty image")
    except RenderPipelineError as e:
        log.warning("PDF export failed at stage=%s: %s", e.stage, e.message)
        raise
    finally:
        try:
            surface.teardown(handle)
        except Exception:
            log.exception("Export surface teardown failed")

    try:
        return image_to_a4_pdf(png, title=title)
    except Exception as e:
        log.warning("PDF export failed at stage=%s: %s", STAGE_RASTERIZE, e)
        raise RenderPipelineError(STAGE_RASTERIZE, f"Bitmap could not be encoded as PDF: {e}") from e


@dataclass(frozen=True)
class SaveOutcome:
    method: str  # SAVE_METHOD_SAVED | SAVE_METHOD_DOWNLOAD
    filename: str
    message: str
    location: str | None = None


class FileSaveTarget:
    """Writes into a chosen directory. try_save returns None when no directory is configured."""

    def __init__(self, directory: str | None):
        self.directory = (directory or "").strip()

    def try_save(self, blob: bytes, filename: str) -> SaveOutcome | None:
        if not self.directory:
            return None
        name = Path(filename).name
        target = Path(self.directory).expanduser() / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(blob)
        except PermissionError as e:
            raise SaveError(f"Sem permissão para guardar em {target.parent}.") from e
        except OSError as e:
            raise SaveError(f"Não foi possível guardar o PDF: {e.strerror or e}") from e
        log.info("Export saved to %s (%d bytes)", target, len(blob))
        return SaveOutcome(
            method=SAVE_METHOD_SAVED,
            filename=name,
            message=f"PDF guardado em {target}.",
            location=str(target),
        )


class DownloadFallback:
    def save(self, blob: bytes, filename: str) -> SaveOutcome:
        name = Path(filename).name
        log.info("Export served as download %s (%d bytes)", name, len(blob))
        return SaveOutcome(
            method=SAVE_METHOD_DOWNLOAD,
            filename=name,
            message="PDF descarregado. Verifica a pasta de transferências.",
        )


def save_pdf(
    blob: bytes,
    filename: str,
    target: FileSaveTarget | None = None,
    fallback: DownloadFallback | None = None,
) -> SaveOutcome:
    """Try the save location first, then the download fallback."""
    if target is not None:
        outcome = target.try_save(blob, filename)
        if outcome is not None:
            return outcome
    return (fallback or DownloadFallback()).save(blob, filename)
