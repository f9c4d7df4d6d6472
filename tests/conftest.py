"""Shared fixtures: in-memory page fakes, the local stand-in server, Chromium."""

import asyncio
import threading

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from singlish_e2e import config
from singlish_e2e.harness import RunOptions


def pytest_addoption(parser):
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="run the suites against the hosted transliteration page",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--live"):
        return
    skip_live = pytest.mark.skip(reason="needs --live")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeInput:
    def __init__(self, page):
        self.page = page

    async def click(self):
        self.page.events.append(("click",))

    async def fill(self, text):
        if self.page.broken:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.page.events.append(("fill", text))
        self.page.set_value(text)

    async def press_sequentially(self, text, delay=None):
        self.page.events.append(("type", text, delay))
        for ch in text:
            self.page.set_value(self.page.value + ch)


class FakeOutput:
    def __init__(self, page):
        self.page = page

    async def text_content(self, timeout=None):
        return self.page.read_output()


class FakeLocator:
    def __init__(self, element):
        self.first = element


class FakePage:
    """A page whose output region renders ``render(value)``.

    After every input change the next ``lag`` reads still return what was
    shown before, like a page that has not re-rendered yet.
    """

    def __init__(self, render=None, lag=0, fail_goto=False):
        self.render = render or (lambda text: text.upper())
        self.lag = lag
        self.fail_goto = fail_goto
        self.broken = False
        self.value = ""
        self.shown = ""
        self._pending = 0
        self.events = []
        self.screenshots = []
        self.waits = []
        self.url = None
        self.closed = False
        self.input = FakeInput(self)
        self.output = FakeOutput(self)

    def locator(self, selector):
        if selector == config.INPUT_SELECTOR:
            return FakeLocator(self.input)
        return FakeLocator(self.output)

    def set_value(self, value):
        self.value = value
        self._pending = self.lag

    def read_output(self):
        if self._pending > 0:
            self._pending -= 1
            return self.shown
        self.shown = self.render(self.value)
        return self.shown

    async def goto(self, url, wait_until=None, timeout=None):
        if self.fail_goto:
            raise PlaywrightError(f"net::ERR_CONNECTION_REFUSED at {url}")
        self.url = url

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)
        await asyncio.sleep(ms / 1000)

    async def screenshot(self, path, full_page=False):
        self.screenshots.append(path)

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory=FakePage):
        self.page_factory = page_factory
        self.pages = []

    async def new_page(self):
        page = self.page_factory()
        self.pages.append(page)
        return page


@pytest.fixture
def fast_options():
    return RunOptions(
        settle_timeout_ms=200,
        clear_timeout_ms=200,
        scenario_timeout_ms=2000,
        settle_delay_ms=0,
        poll_interval_ms=1,
        verbose=False,
    )


@pytest.fixture(scope="session")
def standin_url():
    from werkzeug.serving import make_server

    from singlish_e2e.server import app

    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}/"
    server.shutdown()
    thread.join(timeout=5)


@pytest.fixture(scope="session")
def chromium():
    async def _launch():
        async with async_playwright() as p:
            browser = await p.chromium.launch()
            await browser.close()

    try:
        asyncio.run(_launch())
    except Exception as e:
        pytest.skip(f"Chromium is not available: {e}")


def run_with_browser(fn):
    """Launch Chromium, await ``fn(browser)`` and close the browser again."""

    async def _main():
        async with async_playwright() as p:
            browser = await p.chromium.launch()
            try:
                return await fn(browser)
            finally:
                await browser.close()

    return asyncio.run(_main())
