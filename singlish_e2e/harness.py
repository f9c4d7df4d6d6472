"""Browser harness for the transliteration suites.

One page is opened per suite and shared by all of its scenarios, which run
one at a time.  Each scenario clears the input, types its text, waits for
the output region to settle and compares what it reads.
"""

import asyncio
import re
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence, Union

from playwright.async_api import Browser, Locator, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import config
from .scenarios import Assertion, Kind, Mode, Scenario, Suite

NON_EMPTY = re.compile(r"\S")
BLANK = re.compile(r"^\s*$")

PASSED = "passed"
FAILED = "failed"
SKIPPED = "skipped"


class HarnessError(Exception):
    pass


class NavigationError(HarnessError):
    """The target page could not be loaded; fatal for the whole suite."""

    def __init__(self, url, reason):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not load {url}: {reason}")


class SettleTimeoutError(HarnessError):
    """The output region never matched the expected pattern in time."""

    def __init__(self, pattern, timeout_ms, last_text):
        self.pattern = pattern
        self.timeout_ms = timeout_ms
        self.last_text = last_text
        super().__init__(
            f"Output did not match /{pattern}/ within {timeout_ms} ms "
            f"(last seen: {last_text!r})"
        )


class AssertionMismatch(HarnessError):
    def __init__(self, actual, expected, negated=False):
        self.actual = actual
        self.expected = expected
        self.negated = negated
        if negated:
            message = f"Output must not be {expected!r}, but it was"
        else:
            message = f"Expected {expected!r}, got {actual!r}"
        super().__init__(message)


@dataclass
class RunOptions:
    input_selector: str = config.INPUT_SELECTOR
    output_selector: str = config.OUTPUT_SELECTOR
    navigation_timeout_ms: int = config.NAVIGATION_TIMEOUT_MS
    settle_timeout_ms: int = config.SETTLE_TIMEOUT_MS
    clear_timeout_ms: int = config.CLEAR_TIMEOUT_MS
    scenario_timeout_ms: int = config.SCENARIO_TIMEOUT_MS
    settle_delay_ms: int = config.SETTLE_DELAY_MS
    typing_delay_ms: int = config.TYPING_DELAY_MS
    poll_interval_ms: int = config.POLL_INTERVAL_MS
    stable_reads: int = config.STABLE_READS
    screenshot_dir: Optional[Path] = None
    verbose: bool = True

    def for_suite(self, suite: Suite) -> "RunOptions":
        if suite.settle_timeout_ms is None:
            return self
        return replace(self, settle_timeout_ms=suite.settle_timeout_ms)


@dataclass
class Session:
    page: Page
    base_url: str

    # Resolved on every call: the page lives for the whole suite and may
    # replace its DOM nodes between scenarios.
    def input_box(self, options: RunOptions) -> Locator:
        return self.page.locator(options.input_selector).first

    def output_region(self, options: RunOptions) -> Locator:
        return self.page.locator(options.output_selector).first


@dataclass
class Outcome:
    suite: str
    scenario_id: str
    status: str
    input_text: str
    expected: str
    assertion: Assertion = Assertion.EQUALS
    primer: Optional[str] = None
    actual: Optional[str] = None
    error: Optional[str] = None
    elapsed: float = 0.0
    screenshot: Optional[Path] = None

    @property
    def passed(self) -> bool:
        return self.status == PASSED

    def describe(self) -> str:
        """Side-by-side report of what was typed, expected and seen."""
        expected = repr(self.expected)
        if self.assertion is Assertion.NOT_EQUALS:
            expected = f"not {expected}"
        lines = [
            f"{self.scenario_id} [{self.suite}] {self.status.upper()}",
        ]
        if self.primer is not None:
            lines.append(f"  primer:   {self.primer!r}")
        lines += [
            f"  input:    {self.input_text!r}",
            f"  expected: {expected}",
            f"  actual:   {self.actual!r}",
        ]
        if self.error:
            lines.append(f"  error:    {self.error}")
        if self.screenshot:
            lines.append(f"  screenshot: {self.screenshot}")
        return "\n".join(lines)


@dataclass
class SuiteResult:
    suite: Suite
    outcomes: List[Outcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failures(self) -> List[Outcome]:
        return [o for o in self.outcomes if o.status == FAILED]

    @property
    def passed(self) -> bool:
        return self.error is None and all(o.passed for o in self.outcomes)

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)


async def open_session(
    browser: Browser, base_url: str, *, timeout_ms: int = config.NAVIGATION_TIMEOUT_MS
) -> Session:
    """Open a page on ``base_url``.  Navigation is attempted once."""
    page = None
    try:
        page = await browser.new_page()
        await page.goto(base_url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as e:
        if page is not None:
            await page.close()
        raise NavigationError(base_url, str(e)) from e
    print(f"Navigated to {base_url}")
    return Session(page=page, base_url=base_url)


async def close_session(session: Optional[Session]) -> None:
    page = getattr(session, "page", None)
    if page is None or page.is_closed():
        return
    await page.close()


@asynccontextmanager
async def session_scope(
    browser: Browser, base_url: str, *, timeout_ms: int = config.NAVIGATION_TIMEOUT_MS
):
    session = await open_session(browser, base_url, timeout_ms=timeout_ms)
    try:
        yield session
    finally:
        await close_session(session)


async def settle_and_read(
    locator: Locator,
    pattern: Union[str, "re.Pattern"] = NON_EMPTY,
    *,
    timeout_ms: int = config.SETTLE_TIMEOUT_MS,
    poll_interval_ms: int = config.POLL_INTERVAL_MS,
    stable_reads: int = config.STABLE_READS,
) -> str:
    """Poll ``locator`` until its text matches ``pattern``, then return it stripped.

    The text must match on ``stable_reads`` consecutive identical reads, so
    output caught halfway through a re-render does not count as settled.
    Raises SettleTimeoutError with the last text seen once ``timeout_ms``
    runs out.
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    deadline = time.monotonic() + timeout_ms / 1000
    last_text = None
    streak = 0

    while True:
        remaining_ms = max(1.0, (deadline - time.monotonic()) * 1000)
        try:
            text = await locator.text_content(timeout=remaining_ms)
        except PlaywrightTimeoutError as e:
            raise SettleTimeoutError(pattern.pattern, timeout_ms, last_text) from e
        text = text or ""

        if pattern.search(text):
            streak = streak + 1 if streak and text == last_text else 1
            if streak >= stable_reads:
                return text.strip()
        else:
            streak = 0
        last_text = text

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise SettleTimeoutError(pattern.pattern, timeout_ms, last_text)
        await asyncio.sleep(min(poll_interval_ms / 1000, remaining))


def check_output(scenario: Scenario, actual: str) -> None:
    if scenario.assertion is Assertion.EQUALS:
        if actual != scenario.expected_output:
            raise AssertionMismatch(actual, scenario.expected_output)
    elif actual == scenario.expected_output:
        raise AssertionMismatch(actual, scenario.expected_output, negated=True)

    if scenario.forbidden_output is not None and actual == scenario.forbidden_output:
        raise AssertionMismatch(actual, scenario.forbidden_output, negated=True)


async def _reset_input(session: Session, scenario: Scenario, options: RunOptions) -> Locator:
    box = session.input_box(options)
    if scenario.mode is Mode.SEQUENTIAL:
        await box.click()
    await box.fill("")
    # Output from the previous scenario must be gone before anything new is read
    await settle_and_read(
        session.output_region(options),
        BLANK,
        timeout_ms=options.clear_timeout_ms,
        poll_interval_ms=options.poll_interval_ms,
        stable_reads=1,
    )
    return box


async def _inject(box: Locator, text: str, mode: Mode, options: RunOptions) -> None:
    if mode is Mode.SEQUENTIAL:
        await box.press_sequentially(text, delay=options.typing_delay_ms)
    else:
        await box.fill(text)


async def _settle(
    session: Session,
    options: RunOptions,
    pattern=NON_EMPTY,
    timeout_ms=None,
    *,
    delay=True,
    stable_reads=None,
) -> str:
    if delay and options.settle_delay_ms:
        await session.page.wait_for_timeout(options.settle_delay_ms)
    return await settle_and_read(
        session.output_region(options),
        pattern,
        timeout_ms=timeout_ms or options.settle_timeout_ms,
        poll_interval_ms=options.poll_interval_ms,
        stable_reads=stable_reads or options.stable_reads,
    )


async def _drive(session: Session, scenario: Scenario, options: RunOptions) -> str:
    """Put the scenario's input on the page and return the settled output."""
    box = await _reset_input(session, scenario, options)

    if scenario.kind is Kind.CLEAR:
        await _inject(box, scenario.primer, scenario.mode, options)
        await _settle(session, options)
        await box.fill("")
        return await _settle(session, options, BLANK, timeout_ms=options.clear_timeout_ms)

    if scenario.kind is Kind.RAPID_RETYPE:
        await _inject(box, scenario.primer, scenario.mode, options)
        # Only wait for the primer to start rendering
        await _settle(session, options, delay=False, stable_reads=1)
        # No settling between the clear and the retype
        await box.fill("")
        await _inject(box, scenario.input_text, scenario.mode, options)
        return await _settle(session, options)

    await _inject(box, scenario.input_text, scenario.mode, options)
    return await _settle(session, options)


async def _capture(session: Session, suite_name: str, scenario: Scenario, directory: Path) -> Optional[Path]:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    name = re.sub(r"[^\w.-]+", "_", f"failed_{suite_name}_{scenario.id}")
    path = directory / f"{name}.png"
    try:
        await session.page.screenshot(path=str(path), full_page=True)
    except PlaywrightError as e:
        print(f"Could not save screenshot for {scenario.id}: {e}")
        return None
    print(f"Screenshot saved to {path}")
    return path


async def run_scenario(
    session: Session,
    scenario: Scenario,
    options: Optional[RunOptions] = None,
    *,
    suite_name: str = "",
) -> Outcome:
    """Run one scenario against the shared page and report its outcome.

    Settle timeouts, mismatches, browser errors and the per-scenario time
    limit all produce a failed Outcome.  NavigationError is not caught.
    """
    options = options or RunOptions()
    outcome = Outcome(
        suite=suite_name,
        scenario_id=scenario.id,
        status=FAILED,
        input_text=scenario.input_text,
        expected=scenario.expected_output,
        assertion=scenario.assertion,
        primer=scenario.primer,
    )
    if options.verbose:
        print(f"--- Running test: [{suite_name}] {scenario.label} ---")

    started = time.monotonic()
    try:
        outcome.actual = await asyncio.wait_for(
            _drive(session, scenario, options), options.scenario_timeout_ms / 1000
        )
        check_output(scenario, outcome.actual)
        outcome.status = PASSED
    except SettleTimeoutError as e:
        outcome.actual = e.last_text
        outcome.error = str(e)
    except AssertionMismatch as e:
        outcome.error = str(e)
    except asyncio.TimeoutError:
        outcome.error = f"Scenario did not finish within {options.scenario_timeout_ms} ms"
    except PlaywrightError as e:
        outcome.error = f"Browser error: {e}"
    outcome.elapsed = time.monotonic() - started

    if outcome.passed:
        if options.verbose:
            print(f"--- PASSED: {scenario.id} ({outcome.elapsed:.1f}s) ---")
        return outcome

    if options.screenshot_dir:
        outcome.screenshot = await _capture(session, suite_name, scenario, options.screenshot_dir)
    print(f"--- FAILED: {scenario.id}: {outcome.error} ---")
    return outcome


async def run_suite(
    browser: Browser,
    suite: Suite,
    *,
    base_url: str = config.TARGET_URL,
    options: Optional[RunOptions] = None,
) -> SuiteResult:
    """Run every scenario of ``suite`` in order on one shared page.

    In a strict suite the first failure skips the rest.  A page that cannot
    be loaded aborts the suite and is recorded on ``SuiteResult.error``.
    """
    options = (options or RunOptions()).for_suite(suite)
    result = SuiteResult(suite=suite)
    try:
        async with session_scope(browser, base_url, timeout_ms=options.navigation_timeout_ms) as session:
            for scenario in suite.scenarios:
                if suite.strict and result.failures:
                    result.outcomes.append(
                        Outcome(
                            suite=suite.key,
                            scenario_id=scenario.id,
                            status=SKIPPED,
                            input_text=scenario.input_text,
                            expected=scenario.expected_output,
                            assertion=scenario.assertion,
                            primer=scenario.primer,
                            error="Skipped after an earlier failure in a strict suite",
                        )
                    )
                    continue
                outcome = await run_scenario(session, scenario, options, suite_name=suite.key)
                result.outcomes.append(outcome)
    except NavigationError as e:
        print(f"--- SUITE ABORTED: {suite.key}: {e} ---")
        result.error = str(e)
    return result


async def run_suites(
    browser: Browser,
    suites: Sequence[Suite],
    *,
    base_url: str = config.TARGET_URL,
    options: Optional[RunOptions] = None,
    max_parallel: int = config.MAX_PARALLEL_SUITES,
) -> List[SuiteResult]:
    """Run suites side by side, each on its own page.  Results keep input order."""
    semaphore = asyncio.Semaphore(max(1, max_parallel))

    async def _bounded(suite):
        async with semaphore:
            return await run_suite(browser, suite, base_url=base_url, options=options)

    return list(await asyncio.gather(*(_bounded(suite) for suite in suites)))


def format_summary(results: Sequence[SuiteResult]) -> str:
    lines = []
    for result in results:
        if result.error:
            lines.append(f"{result.suite.key}: ABORTED ({result.error})")
            continue
        lines.append(
            f"{result.suite.key}: {result.count(PASSED)} passed, "
            f"{result.count(FAILED)} failed, {result.count(SKIPPED)} skipped"
        )
    failures = [o for result in results for o in result.failures]
    if failures:
        lines.append("")
        lines.append("Failures:")
        lines.extend(o.describe() for o in failures)
    return "\n".join(lines)
