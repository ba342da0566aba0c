import os

from .http_retry import create_retry_session

REQSPEC_RETRY_CONFIG = {
    "total": int(os.environ.get("REQSPEC_HTTP_RETRIES", "5")),
    "backoff_factor": float(os.environ.get("REQSPEC_HTTP_BACKOFF_FACTOR", "1.0")),
}

session = create_retry_session(
    retry_config=REQSPEC_RETRY_CONFIG,
    timeout=float(os.environ.get("REQSPEC_HTTP_TIMEOUT", "60.0")),
)
