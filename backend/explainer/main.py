from contextlib import asynccontextmanager
from typing import Optional
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .cache import TTLCache
from .config import settings
from .db import engine
from .models import Base
from .inference.gemini import GeminiVisionModel, VisionModel
from .services.analyzer import ProblemAnalyzer
from .services.classifier import SubjectClassifier
from .services.problem_store import ProblemStore
from .security.csrf import csrf_middleware
from .routes.auth import router as auth_router
from .routes.problems import router as problems_router
from .routes.system import router as system_router
from .logger import logger
from .exceptions import (
    ExplainerBaseException,
    explainer_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Problem Explainer API")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Shutting down Problem Explainer API")


async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(
        f"Request: {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        }
    )

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Response: {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
    )

    return response


def create_app(vision_model: Optional[VisionModel] = None) -> FastAPI:
    """
    Build the application and the per-process services it owns.
    """
    app = FastAPI(
        title="Problem Explainer API",
        version=settings.APP_VERSION,
        description="Step-by-step explanations for photographed practice problems",
        lifespan=lifespan,
    )

    app.add_exception_handler(ExplainerBaseException, explainer_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # last added runs first: CORS -> request log -> session -> CSRF
    app.middleware("http")(csrf_middleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site="strict",
        https_only=settings.SESSION_HTTPS_ONLY,
    )
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    model = vision_model or GeminiVisionModel()
    cache = TTLCache(
        default_ttl=settings.CACHE_DEFAULT_TTL_SECONDS,
        sweep_every=settings.CACHE_SWEEP_EVERY,
    )
    store = ProblemStore(cache)
    classifier = SubjectClassifier(model)

    app.state.cache = cache
    app.state.problem_store = store
    app.state.classifier = classifier
    app.state.analyzer = ProblemAnalyzer(model, classifier, store)

    app.include_router(auth_router)
    app.include_router(problems_router)
    app.include_router(system_router)

    return app


app = create_app()
