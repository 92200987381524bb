"""
Global constants and tuning defaults.
No dependencies - safe to import from anywhere.

Timeouts that operators commonly tune live in config/environment.py; the
values here are the fixed retry budgets and policies of the automation core.
"""

# ============================================================================
# Session Initialization
# ============================================================================

NAVIGATION_TIMEOUT_SECS = 120.0
"""Upper bound for the initial navigation to the application root."""

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/115.0.0.0 Safari/537.36"
)

BLOCKED_RESOURCE_PATTERNS = (
    "*.png", "*.jpg", "*.jpeg", "*.gif", "*.webp", "*.ico", "*.bmp",
    "*.woff", "*.woff2", "*.ttf", "*.otf",
    "*.mp3", "*.mp4", "*.webm", "*.ogg", "*.wav",
)
"""URL patterns dropped by the resource-blocking policy (images, fonts, media)."""

HIDE_WEBDRIVER_SCRIPT = "Object.defineProperty(navigator, 'webdriver', { get: () => false });"


# ============================================================================
# Retry Budgets
# ============================================================================

ENTER_PROJECT_RETRIES = 3
ENTER_PROJECT_DELAY_SECS = 2.0
"""Fixed delay between attempts to click the project link."""

TEMP_INPUT_RETRIES = 5
TEMP_INPUT_DELAY_SECS = 0.5

SUBMIT_RETRIES = 3
SUBMIT_DELAY_SECS = 0.3

CAPTURE_RETRIES = 5
CAPTURE_DELAY_SECS = 0.3
"""Linear delay unit: attempt n waits n * CAPTURE_DELAY_SECS."""

ELEMENT_TIMEOUT_SECS = 30.0
"""Default wait for navigation targets and menu controls."""

MENU_TIMEOUT_SECS = 10.0

HOVER_SETTLE_SECS = 0.2
DELETE_ROOT_SETTLE_SECS = 0.5
PURGE_DEFAULT_LIMIT = 50


# ============================================================================
# Completion Detection
# ============================================================================

BUSY_GRACE_SECS = 3.0
"""How long to wait for the busy indicator to appear before trusting content stability alone."""

MUTATION_PUMP_SECS = 0.1
"""How often queued page-to-host calls are drained."""

DEGRADED_REPLY_MARKERS = ("⚠️",)
"""A reply beginning with one of these is an error banner, not an answer."""

HOST_SNAPSHOT_FUNCTION = "__cwbPushSnapshot"


__all__ = [
    "NAVIGATION_TIMEOUT_SECS",
    "DEFAULT_USER_AGENT",
    "BLOCKED_RESOURCE_PATTERNS",
    "HIDE_WEBDRIVER_SCRIPT",
    "ENTER_PROJECT_RETRIES",
    "ENTER_PROJECT_DELAY_SECS",
    "TEMP_INPUT_RETRIES",
    "TEMP_INPUT_DELAY_SECS",
    "SUBMIT_RETRIES",
    "SUBMIT_DELAY_SECS",
    "CAPTURE_RETRIES",
    "CAPTURE_DELAY_SECS",
    "ELEMENT_TIMEOUT_SECS",
    "MENU_TIMEOUT_SECS",
    "HOVER_SETTLE_SECS",
    "DELETE_ROOT_SETTLE_SECS",
    "PURGE_DEFAULT_LIMIT",
    "BUSY_GRACE_SECS",
    "MUTATION_PUMP_SECS",
    "DEGRADED_REPLY_MARKERS",
    "HOST_SNAPSHOT_FUNCTION",
]
