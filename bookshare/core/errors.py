import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bookshare.core import messages

logger = logging.getLogger(__name__)


def error_payload(code: str, message: str, details: str | None = None) -> dict:
    # Standardized error body for easier frontend handling and debugging.
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
        }
    }


class BookshareError(Exception):
    """
    Base for every failure the API reports to clients.
    `message` is user-facing; anything internal belongs in the log only.
    """

    status_code = 500
    code = "SERVER_ERROR"
    message = messages.SERVER_ERROR

    def __init__(self, message: str | None = None, details: str | None = None) -> None:
        if message is not None:
            self.message = message
        self.details = details
        super().__init__(self.message)


class InvalidUpload(BookshareError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = messages.MISSING_FIELDS


class MissingFile(BookshareError):
    status_code = 400
    code = "MISSING_FILE"
    message = messages.MISSING_FILE


class UnsupportedFileType(BookshareError):
    status_code = 400
    code = "UNSUPPORTED_FILE_TYPE"
    message = messages.UNSUPPORTED_TYPE


class FileTooLarge(BookshareError):
    status_code = 400
    code = "FILE_TOO_LARGE"

    def __init__(self, limit_mb: int) -> None:
        super().__init__(messages.FILE_TOO_LARGE.format(limit_mb=limit_mb))


class InvalidRating(BookshareError):
    status_code = 400
    code = "INVALID_RATING"
    message = messages.RATING_OUT_OF_RANGE


class BookNotFound(BookshareError):
    status_code = 404
    code = "BOOK_NOT_FOUND"
    message = messages.BOOK_NOT_FOUND


class BookFileMissing(BookshareError):
    status_code = 404
    code = "FILE_NOT_FOUND"
    message = messages.FILE_NOT_FOUND


class StorageUnavailable(BookshareError):
    """Database or disk failure. Never carries client-visible details."""


async def bookshare_error_handler(request: Request, exc: BookshareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed (%s): %s",
            request.method,
            request.url.path,
            exc.details,
            exc.__cause__ or exc.code,
            exc_info=exc.__cause__,
        )
        body = error_payload(exc.code, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
        body = error_payload(exc.code, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
    logger.info("%s %s invalid request: %s", request.method, request.url.path, fields)
    return JSONResponse(
        status_code=400,
        content=error_payload("VALIDATION_ERROR", messages.INVALID_REQUEST, fields or None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_payload("SERVER_ERROR", messages.SERVER_ERROR),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookshareError, bookshare_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
