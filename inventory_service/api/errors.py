from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, OperationalError, InterfaceError

from shared.core import get_logger
from inventory_service.domain.errors import InventoryError

logger = get_logger(__name__)

def error_response(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "detail": detail})

def register_exception_handlers(app: FastAPI) -> None:
    """Translate domain and storage failures into stable JSON error bodies"""

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
        return error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            detail = f"{location}: {first.get('msg')}" if location else first.get("msg")
        else:
            detail = "Invalid request"
        return error_response(status.HTTP_400_BAD_REQUEST, "invalid_argument", detail)

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        if isinstance(exc, (OperationalError, InterfaceError)):
            logger.error(
                "Inventory store unreachable",
                exc_info=exc,
                extra={'extra_fields': {'path': request.url.path}},
            )
            return error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable", "Inventory store unavailable"
            )
        logger.error(
            "Inventory store error",
            exc_info=exc,
            extra={'extra_fields': {'path': request.url.path}},
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal server error")
