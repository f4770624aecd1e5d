# app/core/middleware.py
from typing import Iterable, List, Optional
import logging
import re

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette import status

from app.core.permission import Principal
from app.core.security import InvalidTokenError, decode_token, is_access_token

logger = logging.getLogger(__name__)


def _is_whitelisted(path: str, white: Iterable[re.Pattern[str]]) -> bool:
    return any(p.match(path) for p in white)


class CapabilityMiddleware(BaseHTTPMiddleware):
    """
    Global auth gate:
      - Non-whitelisted paths must carry a Bearer access token.
      - The decoded claims become a Principal on request.state.principal.
      - Capability checks happen in route dependencies (require_capability).
    """

    def __init__(
        self,
        app,
        *,
        allow_anonymous: Optional[List[re.Pattern[str]]] = None,
    ):
        super().__init__(app)
        self.allow_anonymous = allow_anonymous or [
            re.compile(r"^/$"),
            re.compile(r"^/docs$"),
            re.compile(r"^/redoc$"),
            re.compile(r"^/openapi\.json$"),
            re.compile(r"^(/api)?/health(/db)?$"),
        ]

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if _is_whitelisted(path, self.allow_anonymous):
            return await call_next(request)

        auth = request.headers.get("authorization") or ""
        if not auth.lower().startswith("bearer "):
            return JSONResponse(
                {"detail": "missing_bearer_token"},
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
        token = auth.split(" ", 1)[1].strip()

        try:
            payload = decode_token(token)
        except InvalidTokenError as exc:
            logger.info("Rejected token on %s: %s", path, exc)
            return JSONResponse({"detail": "invalid_token"}, status_code=status.HTTP_401_UNAUTHORIZED)

        if not is_access_token(payload):
            return JSONResponse({"detail": "invalid_token_type"}, status_code=status.HTTP_401_UNAUTHORIZED)

        request.state.principal = Principal.from_claims(payload)
        return await call_next(request)
