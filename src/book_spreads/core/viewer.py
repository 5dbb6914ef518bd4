"""Browser sessions on the book viewer.

The pipeline only needs a handful of operations from the browser: open a
URL, snapshot the page, click the export button and catch the tab it opens,
and read that tab's PDF back as bytes. ``ViewerSession`` names those
operations; ``PlaywrightSession`` implements them with a persistent Chrome
profile so a login survives between runs.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from playwright.async_api import (
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from book_spreads.core.detector import BookDocument
from book_spreads.core.errors import (
    CaptureTimeoutError,
    NavigationError,
    RetrievalError,
    TriggerError,
)

VIEWPORT = {'width': 1920, 'height': 1080}
BROWSER_ARGS = ['--disable-blink-features=AutomationControlled']

# Runs inside the export tab; the PDF lives behind a blob: URL that only
# that tab can read.
FETCH_BYTES_JS = """
async (url) => {
  const response = await fetch(url);
  const blob = await response.blob();
  const buffer = await blob.arrayBuffer();
  return Array.from(new Uint8Array(buffer));
}
"""


class ExportSurface(ABC):
    """A tab opened by the export button."""

    @abstractmethod
    async def read_bytes(self) -> bytes:
        """Fetch the tab's document as raw bytes."""

    @abstractmethod
    async def close(self) -> None:
        pass


class ViewerSession(ABC):
    """One browser profile showing one book."""

    async def __aenter__(self) -> "ViewerSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        pass

    @abstractmethod
    async def open(self, url: str, wait_until: str = 'load') -> None:
        """Navigate the viewer tab to ``url``.

        Raises:
            NavigationError: If the page cannot be loaded
        """

    @abstractmethod
    async def snapshot(self) -> BookDocument:
        """Capture the current page as HTML plus visible body text."""

    @abstractmethod
    async def open_export(self, selector: str, timeout: float) -> ExportSurface:
        """Click ``selector`` and return the tab it opens.

        Raises:
            TriggerError: If the click fails
            CaptureTimeoutError: If no new tab opens within ``timeout`` seconds
        """

    @abstractmethod
    async def close(self) -> None:
        pass


class PlaywrightSurface(ExportSurface):

    def __init__(self, page: Page):
        self.page = page

    async def read_bytes(self) -> bytes:
        url = self.page.url
        try:
            data = await self.page.evaluate(FETCH_BYTES_JS, url)
        except PlaywrightError as e:
            raise RetrievalError(f"Could not read PDF from {url}: {e}") from e
        if not data:
            raise RetrievalError(f"Empty document at {url}")
        return bytes(data)

    async def close(self) -> None:
        if not self.page.is_closed():
            await self.page.close()


class PlaywrightSession(ViewerSession):
    """Chrome with a persistent profile directory."""

    def __init__(self, profile_dir: Path, headless: bool = False,
                 channel: Optional[str] = 'chrome'):
        self.profile_dir = profile_dir
        self.headless = headless
        self.channel = channel
        self._playwright: Optional[Playwright] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self.context = await self._playwright.chromium.launch_persistent_context(
            user_data_dir=str(self.profile_dir),
            headless=self.headless,
            channel=self.channel,
            viewport=VIEWPORT,
            args=BROWSER_ARGS,
        )
        # A persistent context starts with one tab already open
        pages = self.context.pages
        self.page = pages[0] if pages else await self.context.new_page()

    async def close(self) -> None:
        if self.context:
            await self.context.close()
            self.context = None
            self.page = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def open(self, url: str, wait_until: str = 'load') -> None:
        try:
            await self.page.goto(url, wait_until=wait_until)
        except PlaywrightError as e:
            raise NavigationError(f"Could not open {url}: {e}") from e

    async def snapshot(self) -> BookDocument:
        html = await self.page.content()
        text = await self.page.inner_text('body')
        return BookDocument(html=html, text=text)

    async def open_export(self, selector: str, timeout: float) -> ExportSurface:
        try:
            async with self.context.expect_page(timeout=timeout * 1000) as page_info:
                try:
                    await self.page.click(selector)
                except PlaywrightError as e:
                    raise TriggerError(f"Error clicking {selector}: {e}") from e
            export_page = await page_info.value
        except PlaywrightTimeoutError as e:
            raise CaptureTimeoutError(f"No PDF tab opened within {timeout:g}s") from e

        surface = PlaywrightSurface(export_page)
        try:
            await export_page.wait_for_load_state('load')
        except PlaywrightError as e:
            await surface.close()
            raise RetrievalError(f"PDF tab did not finish loading: {e}") from e
        return surface
