import logging
import sys
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from api.di.container import ApplicationContainer as DependencyContainer
from api.features.debate.exceptions import StoreUnavailableError
from core.settings import SETTINGS

# Configure logging
logging.basicConfig(
    level=SETTINGS.APP.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if SETTINGS.APP.JSON_LOGS
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(SETTINGS.APP.LOG_LEVEL.upper())
    ),
)

logger = logging.getLogger("debate")

MESSAGE_REQUIRED = "Message is required and must be a string."
CONVERSATION_ID_INVALID = "conversation_id must be a string or null."
INVALID_JSON = "Request body must be valid JSON."


def _validation_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any("message" in error.get("loc", ()) for error in errors):
        return MESSAGE_REQUIRED
    if any(error.get("type") == "json_invalid" for error in errors):
        return INVALID_JSON
    if any("conversation_id" in error.get("loc", ()) for error in errors):
        return CONVERSATION_ID_INVALID
    return MESSAGE_REQUIRED


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info(
        f"Starting application initialization ({SETTINGS.APP.ENVIRONMENT})..."
    )
    start_time = time.time()

    uses_redis = SETTINGS.STORE.STORE_BACKEND == "redis"
    try:
        if uses_redis:
            logger.info("Initializing Redis connection...")
            redis_start = time.time()
            redis_resource = _app.container.infrastructure.redis_db()
            await redis_resource.init()
            await redis_resource.connect()
            logger.info(
                f"✅ Redis connection established in {time.time() - redis_start:.2f}s"
            )
        else:
            logger.info("Using in-memory conversation store")

        logger.info(
            f"✅ Application startup completed in {time.time() - start_time:.2f}s"
        )
    except Exception as e:
        logger.exception(f"❌ Failed to initialize application: {str(e)}")
        raise

    yield

    try:
        if uses_redis:
            redis_resource = _app.container.infrastructure.redis_db()
            await redis_resource.disconnect()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.exception(f"Error during shutdown: {str(e)}")


def create_fastapi_app() -> CustomFastAPI:
    origins = {
        "*",
        "http://localhost",
        "http://localhost:*",
        "http://localhost:3000",
        "http://localhost:8000",
    }

    _app = CustomFastAPI(
        title="Debate Bot API",
        description="Multi-turn debates with an AI agent bound to a fixed topic and stance",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = DependencyContainer()
    _app.container.infrastructure.config.from_dict(SETTINGS.model_dump())
    _app.container.wire(modules=[sys.modules[__name__]])
    _app.container.init_resources()

    # Add CORS middleware
    _app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include feature routers
    from api.features.debate.router import router as debate_router

    _app.include_router(debate_router, prefix="/api", tags=["Debate"])

    return _app


app = create_fastapi_app()


# Health check endpoints
@app.get("/")
async def root():
    return {"message": "Debate Bot API is running. Use POST /api/debate", "status": "ok"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    store = app.container.infrastructure.conversation_store()
    if not await store.ping():
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "dependencies": {"store": "unavailable"}},
        )
    return {"status": "ok"}


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": _validation_error_message(exc),
            "detail": str(exc),
            "status_code": 400,
        },
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Conversation store unavailable: {exc.message} {exc.details}")
    return JSONResponse(
        status_code=503,
        content={
            "error": "Conversation store unavailable",
            "detail": exc.error_code,
            "status_code": 503,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "status_code": 500,
        },
    )
