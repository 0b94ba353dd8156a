import hashlib
import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("survivor.access")

# Query parameters that identify which league/round a request was about.
_CONTEXT_PARAMS = ("league", "season", "round", "skip_cache")
# Requests that had to reach API-Football for several rounds can be slow.
SLOW_REQUEST_MS = 5000.0


def request_context(request: Request) -> dict[str, str]:
    return {
        key: request.query_params[key]
        for key in _CONTEXT_PARAMS
        if key in request.query_params
    }


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON log line per request; echoes the request id back to the client."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        entry = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
        }
        context = request_context(request)
        if context:
            entry["context"] = context
        if request.client:
            entry["client_ip_hash"] = hashlib.sha256(
                (request.client.host or "").encode()
            ).hexdigest()[:12]
        if elapsed_ms >= SLOW_REQUEST_MS:
            entry["slow"] = True

        failed_or_slow = response.status_code >= 400 or elapsed_ms >= SLOW_REQUEST_MS
        logger.log(logging.WARNING if failed_or_slow else logging.INFO, json.dumps(entry))

        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    # httpx logs every request at INFO, including query strings.
    logging.getLogger("httpx").setLevel(logging.WARNING)
