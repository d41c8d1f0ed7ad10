"""Logging setup: quiet health-probe access lines and chatty HTTP client libraries."""

import logging
from typing import Optional, Tuple


class SuppressHealthPollingFilter(logging.Filter):
    """Drops successful uvicorn access lines for health probes and CORS preflights."""

    SUPPRESSED_PATHS: Tuple[str, ...] = ("/api/health", "/api/healthz", "/health")

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False to suppress, True to keep."""
        parsed = self._parse_access_args(record)
        if parsed is None:
            return True

        method, path, status_code = parsed
        if status_code != 200:
            return True

        if method == "OPTIONS":
            return False

        # Query strings are part of the logged path
        return path.split("?", 1)[0] not in self.SUPPRESSED_PATHS

    @staticmethod
    def _parse_access_args(record: logging.LogRecord) -> Optional[Tuple[str, str, int]]:
        # uvicorn: (client_addr, method, path, http_version, status_code)
        args = record.args
        if not isinstance(args, tuple) or len(args) != 5:
            return None
        try:
            return str(args[1]), str(args[2]), int(args[4])
        except (TypeError, ValueError):
            return None


def configure_logging():
    """Install the access-log filter and set library log levels."""
    logger = logging.getLogger(__name__)

    access_filter = SuppressHealthPollingFilter()
    for handler in logging.getLogger("uvicorn.access").handlers:
        handler.addFilter(access_filter)

    # Outbound provider traffic is logged by the gateway itself
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)

    # Retries and per-scene failures
    logging.getLogger("app.services").setLevel(logging.DEBUG)

    logger.info(f"Logging configured: health polling suppressed on {', '.join(SuppressHealthPollingFilter.SUPPRESSED_PATHS)}")
