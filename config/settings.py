"""
Runtime settings for the product-tracking scraper.

Every tunable lives here as a module-level constant.  Values that an
operator may want to change without a deploy are read from the
environment; a local ``.env`` file is honoured.
"""

import os
import random as _random

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Browser / Playwright defaults (stealth configuration)
# ---------------------------------------------------------------------------

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

# Real Chrome gives a shipping TLS fingerprint; bundled Chromium is the
# fallback when the channel is not installed.
BROWSER_CHANNEL = os.getenv("BROWSER_CHANNEL", "chrome")

HEADLESS = os.getenv("HEADLESS", "true").lower() == "true"

# Rotated per page so consecutive requests do not share a fingerprint.
_USER_AGENT_POOL = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
]


def get_user_agent() -> str:
    """Return a randomly selected realistic Chrome User-Agent."""
    return _random.choice(_USER_AGENT_POOL)


_VIEWPORT_BASES = [
    (1920, 1080),
    (1440, 900),
    (1536, 864),
    (1366, 768),
]


def get_viewport() -> dict[str, int]:
    """Return a slightly randomized desktop viewport."""
    w, h = _random.choice(_VIEWPORT_BASES)
    return {
        "width": w + _random.randint(-16, 16),
        "height": h + _random.randint(-8, 8),
    }


# Third-party trackers that slow page loads and feed bot scoring.
BLOCKED_RESOURCE_PATTERNS = [
    "*google-analytics.com*",
    "*googletagmanager.com*",
    "*facebook.net*",
    "*doubleclick.net*",
    "*hotjar.com*",
    "*segment.io*",
    "*tiktok.com*",
]

# Product pages hydrate prices and variant pickers late, so wait for the
# network to go quiet rather than for DOMContentLoaded.
WAIT_UNTIL = "networkidle"

GOTO_TIMEOUT_MS = int(os.getenv("GOTO_TIMEOUT_MS", "60000"))

# Fixed pause after navigation for scripts that render after network idle.
SETTLE_DELAY_SEC = float(os.getenv("SETTLE_DELAY_SEC", "2"))

# Default bound for a single click / wait-for-selector step.
INTERACTION_TIMEOUT_MS = 5_000

# ---------------------------------------------------------------------------
# Static fetch
# ---------------------------------------------------------------------------

STATIC_FETCH_TIMEOUT_SEC = float(os.getenv("STATIC_FETCH_TIMEOUT_SEC", "30"))

STATIC_HEADERS = {
    "User-Agent": _USER_AGENT_POOL[0],
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

# ---------------------------------------------------------------------------
# Render strategy
# ---------------------------------------------------------------------------

# Registrable domains whose product data only exists after client-side
# rendering.  Browser-only extractors are dynamic regardless of this list.
DYNAMIC_DOMAINS = frozenset({
    "zara.com",
    "hm.com",
    "mango.com",
    "gap.com",
    "forever21.com",
    "amazon.com",
    "farfetch.com",
    "jcrew.com",
    "ralphlauren.com",
})

# ---------------------------------------------------------------------------
# Extraction defaults
# ---------------------------------------------------------------------------

PLACEHOLDER_IMAGE = "https://via.placeholder.com/400"
UNTITLED_PRODUCT = "Untitled Product"
DEFAULT_CURRENCY = "USD"
ONE_SIZE = "One Size"

# ---------------------------------------------------------------------------
# Worker loop
# ---------------------------------------------------------------------------

# Randomized pause after each processed item.
BUSY_SLEEP_RANGE_SEC = (
    float(os.getenv("BUSY_SLEEP_MIN_SEC", "10")),
    float(os.getenv("BUSY_SLEEP_MAX_SEC", "15")),
)

# Pause when the queue is empty.
IDLE_SLEEP_SEC = float(os.getenv("IDLE_SLEEP_SEC", "60"))

# Price history retention window returned by the store.
PRICE_HISTORY_DAYS = 90

# ---------------------------------------------------------------------------
# Item store
# ---------------------------------------------------------------------------

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

ITEMS_TABLE = "items"
PRICE_HISTORY_TABLE = "price_history"
