"""Token redaction and response hardening for the file token route.

File tokens travel in the URL path (``/getfilesrc/{token}``), so they would
otherwise show up verbatim in access logs and in Referer headers sent by
browsers when a served document links elsewhere.
"""

import logging
import re
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

TOKEN_REDACTED = "[TOKEN_REDACTED]"


def build_token_path_pattern(route_prefix: str) -> re.Pattern[str]:
    """Compile the pattern matching ``<route_prefix>/<token>`` in free text."""
    return re.compile(rf"({re.escape(route_prefix.rstrip('/'))}/)([A-Za-z0-9]+)")


def redact_token_from_path(path: str, route_prefix: str) -> str:
    """Replace a file token in a URL path with a placeholder."""
    return build_token_path_pattern(route_prefix).sub(rf"\1{TOKEN_REDACTED}", path)


class TokenRedactionFilter(logging.Filter):
    """Logging filter that redacts file tokens embedded in route paths.

    Only the path form is rewritten. Structured ``extra`` fields such as
    ``token`` are left intact for diagnostics.
    """

    def __init__(self, route_prefix: str):
        super().__init__()
        self._pattern = build_token_path_pattern(route_prefix)

    def redact(self, value: str) -> str:
        return self._pattern.sub(rf"\1{TOKEN_REDACTED}", value)

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)

        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(
                    self.redact(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )
            elif isinstance(record.args, dict):
                record.args = {
                    k: self.redact(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }

        return True


def install_token_redaction_logging(route_prefix: str) -> TokenRedactionFilter:
    """Install the redaction filter on the root and server loggers."""
    redaction_filter = TokenRedactionFilter(route_prefix)

    logging.getLogger().addFilter(redaction_filter)
    for name in ["uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "filetoken"]:
        logging.getLogger(name).addFilter(redaction_filter)

    return redaction_filter


class TokenRouteHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response served from the token route.

    - Referrer-Policy: no-referrer keeps the token out of Referer headers
    - X-Content-Type-Options: nosniff pins the sniffed Content-Type
    """

    def __init__(self, app: ASGIApp, route_prefix: str):
        super().__init__(app)
        self._route_prefix = route_prefix.rstrip("/") + "/"

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        response = await call_next(request)

        if request.url.path.startswith(self._route_prefix):
            response.headers["Referrer-Policy"] = "no-referrer"
            response.headers["X-Content-Type-Options"] = "nosniff"

        return response
