"""Defaults for the transliteration E2E harness."""

import os

# Hosted transliteration page under test
TARGET_URL = os.environ.get("SINGLISH_E2E_URL", "https://www.swifttranslator.com/")

# Run Chromium with a visible window when set to 1
HEADLESS = os.environ.get("SINGLISH_E2E_HEADED", "0") != "1"

# First text-entry control and first output region on the page
INPUT_SELECTOR = "textarea"
OUTPUT_SELECTOR = "div.bg-slate-50"

# Timeouts, all in milliseconds
NAVIGATION_TIMEOUT_MS = 30000
SETTLE_TIMEOUT_MS = 30000
CLEAR_TIMEOUT_MS = 10000
SCENARIO_TIMEOUT_MS = 60000

# Fixed wait after injecting input, before polling the output region
SETTLE_DELAY_MS = 500

# Inter-key delay for sequential typing
TYPING_DELAY_MS = 100

POLL_INTERVAL_MS = 100

# Consecutive identical reads required before output counts as settled
STABLE_READS = 2

# Suites run side by side, one page each
MAX_PARALLEL_SUITES = 4

# Local stand-in page
STANDIN_HOST = "127.0.0.1"
STANDIN_PORT = 5000
