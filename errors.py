"""
Error taxonomy for the catalog API.

Every failure a route can report is one of the exceptions below. They subclass
HTTPException so FastAPI renders them as ``{"detail": ...}`` with their status.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class InvalidReferenceError(HTTPException):
    """An id is malformed or a referenced category does not exist."""

    def __init__(self, detail: str = "Invalid reference!"):
        super().__init__(status_code=400, detail=detail)


class UploadError(HTTPException):
    def __init__(self, detail: str = "Invalid upload!"):
        super().__init__(status_code=400, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found!"):
        super().__init__(status_code=404, detail=detail)


class AuthError(HTTPException):
    """Login failed: unknown email or wrong password."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "User not authorized!"):
        super().__init__(status_code=401, detail=detail)


class StoreFault(HTTPException):
    def __init__(self, detail: str = "Store operation failed!", status_code: int = 500):
        super().__init__(status_code=status_code, detail=detail)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PyMongoError)
    async def store_fault_handler(request: Request, exc: PyMongoError):
        logger.exception("Store fault on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Store operation failed!"})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        errors = exc.errors(include_url=False, include_context=False)
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})
