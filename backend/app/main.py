import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.crypto import PasswordHasher
from .core.database import Database
from .core.errors import ErrorCode, InternalError, to_error_payload
from .core.logging import setup_logging
from .core.settings import Settings, get_settings
from .auth.tokens import TokenIssuer

from .auth.router import router as auth_router
from .user.router import router as user_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(app.state.settings.LOG_LEVEL)
    app.state.database.init()
    yield
    app.state.database.dispose()


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and not isinstance(exc.detail, dict):
            content = {"error": "Route not found", "code": str(ErrorCode.ROUTE_NOT_FOUND), "path": request.url.path}
        else:
            content = to_error_payload(exc.detail, exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "code": str(ErrorCode.VALIDATION_ERROR), "details": details},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": request.url.path, "method": request.method})
        content = InternalError().detail
        if settings.is_development:
            content = {**content, "details": str(exc)}
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    # Process-wide collaborators, built once and injected through request.app.state
    app.state.settings = settings
    app.state.database = Database(settings.DATABASE_URL)
    app.state.password_hasher = PasswordHasher(settings)
    app.state.token_issuer = TokenIssuer.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)
    app.include_router(auth_router)
    app.include_router(user_router)

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENVIRONMENT,
        }

    return app


app = create_app()
