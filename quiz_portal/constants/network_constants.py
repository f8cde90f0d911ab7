"""Network configuration constants for the quiz portal."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 3000
DEFAULT_BACKEND_URL: str = "http://localhost:8000/api"
BACKEND_REQUEST_TIMEOUT_SECONDS: float = 30.0
