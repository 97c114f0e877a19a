"""
FastAPI application factory
"""
import logging

import psycopg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from budgetbook.config import get_settings
from budgetbook.errors import BudgetBookError, StorageUnavailable, UnexpectedError, ValidationError
from budgetbook.infrastructure.db.session import check_db_connection
from budgetbook.api.v1 import auth, transactions, summary, profile

logger = logging.getLogger(__name__)


def _error_response(error: BudgetBookError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def _log_storage_failure(request: Request, exc: BaseException) -> None:
    # Клиенту - общее сообщение, в лог - класс и текст ошибки драйвера
    orig = getattr(exc, "orig", None)
    logger.error(
        "Storage error on %s %s: %s: %s",
        request.method,
        request.url.path,
        type(orig or exc).__name__,
        orig or exc,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
        _log_storage_failure(request, exc.__cause__ or exc)
        return _error_response(exc)

    @app.exception_handler(BudgetBookError)
    async def budgetbook_error_handler(request: Request, exc: BudgetBookError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return _error_response(exc)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        _log_storage_failure(request, exc)
        return _error_response(StorageUnavailable())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [part for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        field = str(loc[-1]) if loc else "body"
        return _error_response(ValidationError(field, first.get("msg", "Некорректный запрос")))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("ERROR on %s %s", request.method, request.url.path)
        return _error_response(UnexpectedError())


def create_app() -> FastAPI:
    """
    Application factory - создаёт и настраивает FastAPI приложение

    Returns:
        Настроенный FastAPI app
    """
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="BudgetBook",
        debug=settings.DEBUG,
    )

    register_exception_handlers(app)

    # Middleware
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(transactions.router)
    app.include_router(summary.router)
    app.include_router(profile.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (проверяет доступность БД)"""
        try:
            check_db_connection()
        except psycopg.Error as exc:
            raise StorageUnavailable() from exc
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "budgetbook.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
