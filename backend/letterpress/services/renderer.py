"""
HTML → PDF rendering with headless Chromium (Playwright sync API).

Each render launches its own browser and tears it down on every exit path.
Renders are bounded by a process-wide semaphore because each one holds a
full browser process for several seconds.
"""

import logging
import threading
import time
from typing import Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from letterpress.config import RendererConfig
from letterpress.errors import RenderError

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1200, "height": 1600}
DEVICE_SCALE_FACTOR = 2

PDF_OPTIONS = {
    "format": "A4",
    "print_background": True,
    "margin": {
        "top": "0.5in",
        "right": "0.5in",
        "bottom": "0.5in",
        "left": "0.5in",
    },
    "prefer_css_page_size": False,
}

CHROME_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]

# `complete` is true for both loaded and broken images
ALL_IMAGES_COMPLETE_JS = "() => Array.from(document.images).every((img) => img.complete)"


class PdfRenderer:
    """Renders resolved letter HTML to PDF bytes."""

    def __init__(self, config: Optional[RendererConfig] = None):
        self.config = config or RendererConfig()
        self._slots = threading.BoundedSemaphore(self.config.max_concurrent_renders)

    def render_to_pdf(self, html: str, image_url: Optional[str] = None) -> bytes:
        """
        Render ``html`` to an A4 PDF.

        When ``image_url`` is given, waits (bounded by image_timeout_ms) for
        every <img> to finish; a timeout is logged and rendering continues.

        Raises:
            RenderError: browser launch, navigation or PDF export failed.
        """
        with self._slots:
            start_time = time.time()
            try:
                pdf_bytes = self._render(html, image_url)
            except Exception as e:
                logger.error(f"PDF rendering failed: {e}")
                raise RenderError(f"PDF generation failed: {str(e)}") from e

            logger.info(f"Rendered PDF ({len(pdf_bytes)} bytes) in {time.time() - start_time:.2f}s")
            return pdf_bytes

    def _render(self, html: str, image_url: Optional[str]) -> bytes:
        with sync_playwright() as p:
            browser = p.chromium.launch(
                headless=True,
                args=CHROME_ARGS,
                executable_path=self.config.executable_path,
            )
            try:
                context = browser.new_context(
                    viewport=VIEWPORT,
                    device_scale_factor=DEVICE_SCALE_FACTOR,
                )
                try:
                    page = context.new_page()
                    page.set_default_timeout(self.config.navigation_timeout_ms)

                    # Remote images must finish fetching: network idle AND load
                    page.set_content(html, wait_until="networkidle")
                    page.wait_for_load_state("load")

                    if image_url:
                        self._wait_for_images(page)

                    return page.pdf(**PDF_OPTIONS)
                finally:
                    context.close()
            finally:
                browser.close()

    def _wait_for_images(self, page) -> None:
        try:
            page.wait_for_function(ALL_IMAGES_COMPLETE_JS, timeout=self.config.image_timeout_ms)
        except PlaywrightTimeoutError:
            logger.warning(
                f"Images not loaded after {self.config.image_timeout_ms}ms, continuing with PDF generation"
            )
        except PlaywrightError as e:
            logger.warning(f"Image loading check failed, continuing with PDF generation: {e}")
