"""Exception handler producing structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import DatabaseError, ProblemBoxException

logger = logging.getLogger(__name__)


async def problembox_exception_handler(request: Request, exc: ProblemBoxException) -> JSONResponse:
    """
    Convert a ProblemBoxException into the JSON error envelope.

    Client errors (4xx) are logged at WARNING, server errors at ERROR.

    Args:
        request: FastAPI request object
        exc: ProblemBoxException instance

    Returns:
        JSONResponse with error details
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"ProblemBoxException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Unhandled SQLAlchemy errors become a DATABASE_ERROR envelope without leaking SQL."""
    logger.error(
        "Database error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=DatabaseError("Database operation failed").to_dict(),
    )
