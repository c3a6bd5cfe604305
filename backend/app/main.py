from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import auth, class_codes, exams, health, rooms, student
from app.core.config import get_settings
from app.core.exceptions import AppError, ConfigurationError
from app.core.logging import setup_logging
from app.core.middleware import RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()
setup_logging(environment=settings.environment, level=settings.log_level, log_dir=settings.log_dir)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.environment.lower() == "production" and settings.jwt_secret_key == "change-me":
        raise ConfigurationError("JWT_SECRET_KEY must be set in production")
    ensure_runtime_schema_compatibility()
    logger.info("%s started (%s)", settings.project_name, settings.environment)
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
        headers=exc.headers,
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(rooms.router, prefix=f"{settings.api_prefix}/rooms", tags=["rooms"])
app.include_router(class_codes.router, prefix=f"{settings.api_prefix}/class-codes", tags=["class-codes"])
app.include_router(exams.router, prefix=f"{settings.api_prefix}/exams", tags=["exams"])
app.include_router(student.router, prefix=settings.api_prefix, tags=["student"])
