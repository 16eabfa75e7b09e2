import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from event_analytics.api.routes import router as api_router
from event_analytics.core.config import CORS_ORIGINS
from event_analytics.core.database import engine
from event_analytics.core.errors import AnalyticsError, error_body
from event_analytics.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AnalyticsError)
    async def analytics_error_handler(request: Request, exc: AnalyticsError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body("Validation Error", _validation_errors(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Store error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Event Analytics API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/health", include_in_schema=False)
    def health():
        # Liveness: process is up
        return {"status": "ok"}

    @app.get("/ready", include_in_schema=False)
    def ready():
        # Readiness: DB reachable
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "ready"}
        except SQLAlchemyError as e:
            raise HTTPException(status_code=503, detail="db not ready") from e

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": "Welcome to Event Analytics API"}

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
