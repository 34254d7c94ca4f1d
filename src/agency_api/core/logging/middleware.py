"""
Request id middleware.

Each request gets an id: the incoming `X-Request-ID` header when it looks
sane, otherwise a fresh UUID4. The id is stored in the logging contextvar for
the duration of the request and echoed back in the `X-Request-ID` response
header.
"""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

# Keeps header values from smuggling newlines or huge blobs into log lines.
_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def _request_id_from(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming and _SAFE_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = _request_id_from(request)
        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)


__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER"]
