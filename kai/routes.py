import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.admin_routes import router as admin_router
from .api.chat_routes import router as chat_router
from .api.system_routes import router as system_router
from .errors import MessageRequiredError, handle_message_required
from .logging_config import logger
from .provider.google_sdk import GeminiGateway
from .redis_client import close_redis_client, create_redis_client
from .settings import settings


async def handle_unexpected_error(request: Request, exc: Exception):
    """
    Global exception handler: structured 500 body plus a logged traceback.
    """

    error_id = uuid.uuid4().hex
    logger.exception(
        "Unhandled error %s %s (error_id=%s)",
        request.method,
        request.url.path,
        error_id,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "internal_error",
            "message": "Internal server error, please retry later",
            "error_id": error_id,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Process-wide resources:
    - startup: open the Redis handle and build the generation gateway
    - shutdown: close the Redis handle
    """
    redis = create_redis_client(settings.redis_url)
    try:
        await redis.ping()
    except Exception:
        logger.exception("Redis connection failed: url=%s", settings.redis_url)
        await close_redis_client(redis)
        raise
    logger.info("Redis connected")

    app.state.redis = redis
    app.state.gateway = GeminiGateway(settings.gemini_api_key, settings.gemini_model)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; chat turns that miss the cache will fail")

    yield

    await close_redis_client(redis)
    logger.info("Redis connection closed")


def create_app() -> FastAPI:
    app = FastAPI(title="Kaï Backend", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(MessageRequiredError, handle_message_required)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Basic request/response logging; the Authorization header is redacted.
        """
        client_host = request.client.host if request.client else "-"
        headers_for_log = {
            k: ("***REDACTED***" if k.lower() == "authorization" else v)
            for k, v in request.headers.items()
        }
        logger.debug(
            "HTTP %s %s from %s, headers=%s",
            request.method,
            request.url.path,
            client_host,
            headers_for_log,
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error while processing %s %s",
                request.method,
                request.url.path,
            )
            raise
        logger.info(
            "HTTP %s %s from %s -> %s",
            request.method,
            request.url.path,
            client_host,
            response.status_code,
        )
        return response

    app.include_router(system_router)
    app.include_router(chat_router)
    app.include_router(admin_router)

    return app
