import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from apps.stocky.errors import ConflictError, StockyError
from apps.stocky.utils.envelope import error

log = logging.getLogger("stocky.http")


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StockyError)
    async def stocky_error_handler(request: Request, exc: StockyError):
        if exc.status_code >= 500:
            log.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        extra = None
        if isinstance(exc, ConflictError) and exc.existing_id is not None:
            extra = {"id": exc.existing_id}
        message = exc.message if exc.status_code < 500 else "internal"
        return error(message, code=exc.code, status=exc.status_code, extra=extra)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        parts = []
        for e in exc.errors():
            loc = ".".join(str(x) for x in e.get("loc", ()) if x != "body")
            parts.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
        return error("; ".join(parts) or "invalid request", code="validation_error", status=400)
