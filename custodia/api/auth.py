"""API authentication, caller identity, per-caller rate limiting, tracing.

Every ledger request carries two credentials with different jobs:

- ``Authorization: Bearer <CUSTODIA_API_KEY>`` admits the client application
  (skipped in demo mode).
- ``X-Caller-ID`` names the acting participant, the identity the ledger
  checks for admin rights and item ownership.

Rate limits are counted per (client, participant) pair so one busy
custodian behind a shared key cannot starve the others.
"""

import hashlib
import logging
import threading
import time
import uuid
from collections import defaultdict, deque

from fastapi import Depends, Header, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from custodia.config import get_config

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

CALLER_HEADER = "X-Caller-ID"
MAX_CALLER_ID_LENGTH = 128
ANONYMOUS = "-"


# ---------------------------------------------------------------------------
# API key authentication
# ---------------------------------------------------------------------------

def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """Admit the client application. Returns the key, or "demo" in demo mode."""
    cfg = get_config()

    if cfg.demo_mode:
        return "demo"

    if not cfg.api_key:
        raise HTTPException(
            status_code=500,
            detail="Server misconfiguration: CUSTODIA_API_KEY is not set.",
        )

    if credentials is None or credentials.credentials != cfg.api_key:
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API key. Provide 'Authorization: Bearer <key>' header.",
        )
    return credentials.credentials


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------

def require_caller(x_caller_id: str | None = Header(default=None)) -> str:
    """Return the acting identity for a mutating call.

    The ledger decides what the caller may do; this only checks that an
    identity was supplied at all.
    """
    if x_caller_id is None or not x_caller_id.strip():
        raise HTTPException(status_code=400, detail=f"Missing '{CALLER_HEADER}' header.")
    if len(x_caller_id) > MAX_CALLER_ID_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"'{CALLER_HEADER}' exceeds {MAX_CALLER_ID_LENGTH} characters.",
        )
    return x_caller_id


# ---------------------------------------------------------------------------
# Per-caller rate limiting
# ---------------------------------------------------------------------------

class CallerRateLimiter:
    """Sliding-window request budget per (client key, participant) pair.

    Reads without an ``X-Caller-ID`` header share the client's anonymous
    budget.
    """

    def __init__(self, window_seconds: float = 60.0) -> None:
        self.window_seconds = window_seconds
        self._hits: dict[tuple[str, str], deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def hit(self, client: str, caller: str | None, limit: int) -> int:
        """Count one request. Returns how many remain in the window.

        Raises 429 once *caller* has used *limit* requests in the window.
        """
        key = (client, caller or ANONYMOUS)
        with self._lock:
            now = time.monotonic()
            hits = self._hits[key]
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                logger.warning("Rate limit hit for caller=%s (%d/%ds)", key[1], limit, self.window_seconds)
                raise HTTPException(
                    status_code=429,
                    detail=f"Rate limit exceeded for caller '{key[1]}'. Max {limit} requests per {int(self.window_seconds)}s.",
                )
            hits.append(now)
            return limit - len(hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


rate_limiter = CallerRateLimiter()


def rate_limit_default(
    api_key: str = Depends(require_api_key),
    x_caller_id: str | None = Header(default=None),
):
    """Rate limit ledger endpoints per caller (``CUSTODIA_RATE_LIMIT_PER_MINUTE``)."""
    rate_limiter.hit(api_key, x_caller_id, get_config().rate_limit_per_minute)


# ---------------------------------------------------------------------------
# Request-ID and logging middleware
# ---------------------------------------------------------------------------

def _hash_ip(ip: str | None) -> str:
    """Return a one-way hash of the client IP for privacy-safe logging."""
    if not ip:
        return "unknown"
    return hashlib.sha256(ip.encode()).hexdigest()[:12]


async def request_logging_middleware(request: Request, call_next):
    """Add X-Request-ID header and log every request with caller and timing."""
    request_id = str(uuid.uuid4())
    start = time.monotonic()

    response: Response = await call_next(request)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "request_id=%s caller=%s ip=%s %s %s -> %d (%dms)",
        request_id,
        request.headers.get(CALLER_HEADER, ANONYMOUS),
        _hash_ip(request.client.host if request.client else None),
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response
