from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from app.config.settings import settings
from app.core.exceptions import DeliveryServiceError
from app.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, error_code: str, details=None) -> JSONResponse:
    body = ErrorResponse(message=message, error_code=error_code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "%s %s - Status: %s - Time: %.4fs",
            request.method, request.url.path, response.status_code, process_time
        )

        return response


def setup_exception_handlers(app: FastAPI):
    """Traduce los errores de dominio a respuestas HTTP con ErrorResponse"""

    @app.exception_handler(DeliveryServiceError)
    async def delivery_error_handler(request: Request, exc: DeliveryServiceError):
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.error_code, exc.detail)
        return _error_response(exc.status_code, str(exc.detail), exc.error_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("%s %s -> BAD_REQUEST: %s", request.method, request.url.path, exc.errors())
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "The request is invalid",
            "BAD_REQUEST",
            details={"errors": jsonable_errors(exc)}
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "INTERNAL_ERROR"
        )


def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
