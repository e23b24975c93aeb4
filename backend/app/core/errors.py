"""
Erreurs métier et leur traduction HTTP.

Les services lèvent ces exceptions ; seule la couche API les convertit
en réponse (enveloppe {success, message, data, timestamp}).
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.schemas.common import ApiResponse

logger = logging.getLogger(__name__)


class AbastaError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(AbastaError):
    status_code = 400


class UnauthorizedError(AbastaError):
    status_code = 401


class NotFoundError(AbastaError):
    status_code = 404


class ReportRenderingError(AbastaError):
    status_code = 500


def _error_response(status_code: int, message: str) -> JSONResponse:
    body = ApiResponse.error(message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def handle_abasta_error(request: Request, exc: AbastaError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return _error_response(exc.status_code, exc.message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AbastaError, handle_abasta_error)
