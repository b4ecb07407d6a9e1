# -*- coding: utf-8 -*-
"""PDF emission against a fake WebDriver: output, options and teardown."""
from __future__ import annotations

import base64
import os
import threading
import time
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest
from selenium.common.exceptions import WebDriverException

from modules.reports.emitter import PdfEmitter, PdfOptions, emitter_from_config
from modules.reports.errors import PDFGenerationError

PDF = b'%PDF-1.4 test document'


class FakeDriver:
    def __init__(self, fail_at=None):
        self.fail_at = fail_at
        self.quit_called = False
        self.url = None
        self.html = None
        self.print_options = None

    def set_page_load_timeout(self, seconds):
        self.page_load_timeout = seconds

    def get(self, url):
        self.url = url
        path = url2pathname(urlparse(url).path)
        with open(path, encoding='utf-8') as f:
            self.html = f.read()
        if self.fail_at == 'get':
            raise WebDriverException('net::ERR_FILE_NOT_FOUND')

    def execute_script(self, script):
        return True

    def print_page(self, print_options):
        self.print_options = print_options
        if self.fail_at == 'print':
            raise WebDriverException('printing failed')
        return base64.b64encode(PDF).decode('ascii')

    def quit(self):
        self.quit_called = True

    @property
    def html_path(self):
        return url2pathname(urlparse(self.url).path) if self.url else None


def _emitter(driver, **kwargs):
    return PdfEmitter(driver_factory=lambda: driver, **kwargs)


def test_emit_returns_decoded_pdf():
    driver = FakeDriver()
    pdf = _emitter(driver).emit('<html><body>hi</body></html>')
    assert pdf == PDF
    assert driver.html == '<html><body>hi</body></html>'
    assert driver.url.startswith('file://')
    assert driver.quit_called
    assert not os.path.exists(driver.html_path)


def test_print_options_follow_pdf_options():
    driver = FakeDriver()
    _emitter(driver, options=PdfOptions(paper_format='Letter', landscape=True)).emit('<html></html>')
    opts = driver.print_options
    assert opts.orientation == 'landscape'
    assert opts.page_width == 21.59
    assert opts.page_height == 27.94
    assert opts.margin_top == 0.4
    assert opts.background is True


@pytest.mark.parametrize('stage', ['get', 'print'])
def test_browser_is_released_on_failure(stage):
    driver = FakeDriver(fail_at=stage)
    with pytest.raises(PDFGenerationError) as exc:
        _emitter(driver).emit('<html></html>')
    assert exc.value.message == 'PDF generation failed'
    assert driver.quit_called
    assert not os.path.exists(driver.html_path)


def test_launch_failure_is_reported():
    def _no_browser():
        raise WebDriverException('chrome not reachable')

    with pytest.raises(PDFGenerationError):
        PdfEmitter(driver_factory=_no_browser).emit('<html></html>')


def _wait_for(predicate, seconds=2.0):
    deadline = time.monotonic() + seconds
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.01)
    return predicate()


def test_deadline_bounds_hanging_launch():
    driver = FakeDriver()
    release = threading.Event()

    def _hanging_factory():
        release.wait(5)
        return driver

    started = time.monotonic()
    with pytest.raises(PDFGenerationError):
        PdfEmitter(driver_factory=_hanging_factory, timeout=0.2).emit('<html></html>')
    assert time.monotonic() - started < 1.0

    # a browser that finishes launching after the deadline is shut down on arrival
    release.set()
    assert _wait_for(lambda: driver.quit_called)


class HangingPrintDriver(FakeDriver):
    """``print_page`` blocks until the session is quit, like a wedged Chrome."""

    def __init__(self):
        super().__init__()
        self._quit = threading.Event()

    def print_page(self, print_options):
        self._quit.wait(5)
        raise WebDriverException('session deleted')

    def quit(self):
        super().quit()
        self._quit.set()


def test_deadline_bounds_hanging_print():
    driver = HangingPrintDriver()
    started = time.monotonic()
    with pytest.raises(PDFGenerationError):
        _emitter(driver, timeout=0.2).emit('<html></html>')
    assert time.monotonic() - started < 1.0
    assert driver.quit_called
    assert not os.path.exists(driver.html_path)


def test_slow_but_finished_print_is_kept():
    driver = FakeDriver()

    def _slow_factory():
        time.sleep(0.05)
        return driver

    assert PdfEmitter(driver_factory=_slow_factory, timeout=2).emit('<html></html>') == PDF
    assert driver.quit_called


def test_unknown_paper_format():
    driver = FakeDriver()
    with pytest.raises(PDFGenerationError):
        _emitter(driver, options=PdfOptions(paper_format='B5')).emit('<html></html>')
    assert driver.quit_called


def test_emitter_from_config():
    emitter = emitter_from_config({'PDF_RENDER_TIMEOUT': '12', 'PDF_PAPER_FORMAT': 'Legal'})
    assert emitter.timeout == 12.0
    assert emitter.options.paper_format == 'Legal'
    assert callable(emitter.driver_factory)
