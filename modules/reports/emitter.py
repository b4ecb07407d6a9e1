# -*- coding: utf-8 -*-
"""
PDF emission through a headless Chrome session driven by Selenium.

One browser per call, never shared: the session and the temporary HTML
file are released in ``finally`` whatever happens (success, error,
deadline overrun).
"""
from __future__ import annotations

import base64
import logging
import os
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.print_page_options import PrintOptions
from selenium.webdriver.support.ui import WebDriverWait

from .errors import PDFGenerationError

logger = logging.getLogger(__name__)

# width x height in centimetres
PAPER_SIZES = {
    'A3': (29.7, 42.0),
    'A4': (21.0, 29.7),
    'LETTER': (21.59, 27.94),
    'LEGAL': (21.59, 35.56),
}

# 15px at 96dpi
DEFAULT_MARGIN_CM = 0.4

_SETTLED_JS = (
    "return document.readyState === 'complete' && "
    "Array.prototype.every.call(document.images, function (img) { return img.complete; });"
)


@dataclass
class PdfOptions:
    paper_format: str = 'A4'
    landscape: bool = False
    margins_cm: Dict[str, float] = field(default_factory=lambda: {
        'top': DEFAULT_MARGIN_CM,
        'right': DEFAULT_MARGIN_CM,
        'bottom': DEFAULT_MARGIN_CM,
        'left': DEFAULT_MARGIN_CM,
    })
    print_background: bool = True
    scale: float = 1.0

    def to_print_options(self) -> PrintOptions:
        size = PAPER_SIZES.get((self.paper_format or 'A4').upper())
        if size is None:
            raise ValueError(f"Unsupported paper format: {self.paper_format}")
        opts = PrintOptions()
        opts.orientation = 'landscape' if self.landscape else 'portrait'
        opts.page_width, opts.page_height = size
        opts.margin_top = self.margins_cm.get('top', DEFAULT_MARGIN_CM)
        opts.margin_right = self.margins_cm.get('right', DEFAULT_MARGIN_CM)
        opts.margin_bottom = self.margins_cm.get('bottom', DEFAULT_MARGIN_CM)
        opts.margin_left = self.margins_cm.get('left', DEFAULT_MARGIN_CM)
        opts.background = self.print_background
        opts.scale = self.scale
        return opts


def chrome_driver_factory(chrome_binary: Optional[str] = None,
                          use_driver_manager: bool = False) -> Callable[[], Any]:
    """Factory producing a fresh headless Chrome WebDriver per call."""

    def _create():
        chrome_options = Options()
        chrome_options.add_argument('--headless=new')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-setuid-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')
        chrome_options.add_argument('--disable-gpu')
        chrome_options.add_argument('--window-size=1200,800')
        if chrome_binary:
            chrome_options.binary_location = chrome_binary
        if use_driver_manager:
            from selenium.webdriver.chrome.service import Service as ChromeService
            from webdriver_manager.chrome import ChromeDriverManager
            service = ChromeService(ChromeDriverManager().install())
            return webdriver.Chrome(service=service, options=chrome_options)
        return webdriver.Chrome(options=chrome_options)

    return _create


class _BrowserSession:
    """Owns the browser and the temp HTML file of one ``emit`` call.

    ``close`` may run on the caller's thread while the worker is still
    blocked inside Chrome; a driver that only arrives after ``close`` is
    shut down on arrival.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._closed = False
        self.driver = None
        self.html_path: Optional[str] = None

    def write_html(self, html: str) -> str:
        fd, path = tempfile.mkstemp(prefix='report_', suffix='.html')
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(html)
        with self._lock:
            if not self._closed:
                self.html_path = path
                return path
        _remove(path)
        raise TimeoutException('browser session closed before the page was written')

    def attach(self, driver) -> None:
        with self._lock:
            if not self._closed:
                self.driver = driver
                return
        _quit(driver)
        raise TimeoutException('browser session closed before launch completed')

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            driver, self.driver = self.driver, None
            path, self.html_path = self.html_path, None
        if driver is not None:
            _quit(driver)
        if path:
            _remove(path)


def _quit(driver) -> None:
    try:
        driver.quit()
    except Exception as e:
        logger.warning('Failed to shut down browser session: %s', e)


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass


class PdfEmitter:
    """Rasterizes one HTML document into PDF bytes.

    ``timeout`` bounds the whole call: browser launch, page load and print.
    """

    def __init__(self,
                 driver_factory: Optional[Callable[[], Any]] = None,
                 options: Optional[PdfOptions] = None,
                 timeout: float = 60.0):
        self.driver_factory = driver_factory or chrome_driver_factory()
        self.options = options or PdfOptions()
        self.timeout = timeout

    def _print(self, session: _BrowserSession, html: str, options: PdfOptions) -> bytes:
        html_path = session.write_html(html)
        driver = self.driver_factory()
        session.attach(driver)
        driver.set_page_load_timeout(self.timeout)
        driver.get(Path(html_path).as_uri())
        WebDriverWait(driver, self.timeout, poll_frequency=0.1).until(
            lambda d: d.execute_script(_SETTLED_JS)
        )
        encoded = driver.print_page(options.to_print_options())
        return base64.b64decode(encoded)

    def emit(self, html: str, options: Optional[PdfOptions] = None) -> bytes:
        options = options or self.options
        session = _BrowserSession()
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix='pdf-emit')
        try:
            future = pool.submit(self._print, session, html, options)
            pdf = future.result(timeout=self.timeout)
            logger.info('PDF generated (%d bytes)', len(pdf))
            return pdf
        except FutureTimeout as e:
            logger.error('PDF rendering exceeded %gs', self.timeout)
            raise PDFGenerationError('PDF generation failed') from e
        except (WebDriverException, OSError, ValueError) as e:
            logger.error('Error generating PDF: %s', e)
            raise PDFGenerationError('PDF generation failed') from e
        except Exception as e:
            logger.exception('Unexpected error generating PDF: %s', e)
            raise PDFGenerationError('PDF generation failed') from e
        finally:
            # quitting the browser unblocks a worker stuck in a WebDriver call
            session.close()
            pool.shutdown(wait=False)


def emitter_from_config(config: Mapping[str, Any]) -> PdfEmitter:
    return PdfEmitter(
        driver_factory=chrome_driver_factory(
            chrome_binary=config.get('CHROME_BINARY'),
            use_driver_manager=bool(config.get('PDF_USE_DRIVER_MANAGER')),
        ),
        options=PdfOptions(paper_format=config.get('PDF_PAPER_FORMAT') or 'A4'),
        timeout=float(config.get('PDF_RENDER_TIMEOUT') or 60.0),
    )
