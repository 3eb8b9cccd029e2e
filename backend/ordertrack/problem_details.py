"""RFC 7807 Problem Details rendering for engine errors."""
from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .domain_errors import DomainError

logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "https://api.ordertrack.local/problems/"


def build_problem_details_response(exc: DomainError, *, instance: str | None = None) -> JSONResponse:
    """Render a DomainError as an ``application/problem+json`` payload keyed by its code."""
    try:
        title = HTTPStatus(exc.http_status).phrase
    except ValueError:
        title = "Order Error"

    payload: dict[str, object] = {
        "type": PROBLEM_TYPE_BASE + exc.code.lower().replace("_", "-"),
        "title": title,
        "status": exc.http_status,
        "detail": exc.message,
        "code": exc.code,
    }
    if instance:
        payload["instance"] = instance
    if exc.details is not None:
        payload["details"] = exc.details

    return JSONResponse(
        status_code=exc.http_status,
        content=payload,
        media_type="application/problem+json",
    )


def install_problem_details_handler(app: FastAPI) -> None:
    async def _handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        logger.info("request.rejected path=%s code=%s", request.url.path, exc.code)
        return build_problem_details_response(exc, instance=request.url.path)

    app.add_exception_handler(DomainError, _handle_domain_error)
