"""Quiz-related constants shared across the core and the web pages."""

FALLBACK_TIME_LIMIT_SECONDS: int = 60
SESSION_POLL_INTERVAL_MS: int = 1000
ELAPSED_PRECISION_DIGITS: int = 3

EXCELLENT_PERCENTAGE: int = 80
GOOD_PERCENTAGE: int = 60
