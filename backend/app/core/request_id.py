import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id, reusing a client-supplied X-Request-ID when present."""

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("x-request-id")
        request.state.request_id = incoming or f"req_{uuid.uuid4().hex}"
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response
