import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request, tagged with a request id.

    The id is taken from the incoming ``X-Request-ID`` header when present so
    that client retries of a submit can be correlated, and echoed back on the
    response. The error handlers reuse it through ``request.state``.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"[{request_id}] {request.method} {request.url.path} failed",
                extra={"request_id": request_id, "duration_ms": self._elapsed_ms(started)}
            )
            raise

        duration_ms = self._elapsed_ms(started)
        # exam_id / attempt_id once the router has matched
        path_params = dict(request.scope.get("path_params") or {})
        logger.log(
            _level_for(response.status_code),
            f"[{request_id}] {request.method} {request.url.path} - {response.status_code} ({duration_ms}ms)",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "path_params": path_params,
            }
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)
