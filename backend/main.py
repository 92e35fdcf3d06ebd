"""
Main FastAPI application entry point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rigidity.api.routes import deformations, health, metrics
from rigidity.core.config import get_settings
from rigidity.core.errors import DeformationError
from rigidity.core.logging_config import LoggingConfig
from rigidity.core.middleware import LoggingContextMiddleware
from rigidity.core.middleware_metrics import MetricsMiddleware

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} in {settings.app_env} mode "
        f"(deformation mode: {settings.deformation_mode.value})"
    )
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; deformation requests will fail")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


_settings = get_settings()
app = FastAPI(
    title=_settings.app_name,
    description="Natural-language control point deformations for 3D character rigs",
    version="0.1.0",
    lifespan=lifespan,
)

# Add logging context middleware (before CORS to capture all requests)
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(MetricsMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DeformationError)
async def deformation_error_handler(request: Request, exc: DeformationError):
    """Answer pipeline failures with their status and a plain-text message"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        exc.message,
        extra={
            "error_category": exc.category.value,
            "status_code": exc.status_code,
        }
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed or ill-typed bodies are client errors (400)"""
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        message = "Invalid JSON payload"
    else:
        details = "; ".join(
            f"{'.'.join(str(p) for p in error.get('loc', ()) if p != 'body') or 'body'}: {error.get('msg')}"
            for error in errors
        )
        message = f"Invalid JSON payload: {details}"
    logger.warning(message)
    return PlainTextResponse(message, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Framework errors (unknown route, wrong method) as plain text"""
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    logger.error(
        "Unhandled exception",
        exc_info=True,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return PlainTextResponse(f"Internal server error: {exc}", status_code=500)


app.include_router(deformations.router)
app.include_router(health.router)
app.include_router(metrics.router)
