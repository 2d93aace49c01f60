"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealdeal import __version__
from mealdeal.config import settings
from mealdeal.database import Base, async_engine
from mealdeal.logging_config import LoggingContext, configure_logging, get_logger
from mealdeal.pricing import StoreUnavailableError
from mealdeal.routers import admin_router, chains_router, dishes_router, ingredients_router

# Configure logging on module load
configure_logging(log_level=settings.log_level)
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting MealDeal API")

    # Create database tables if they don't exist
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")

    yield

    logger.info("Shutting down MealDeal API")
    await async_engine.dispose()


app = FastAPI(
    title="MealDeal API",
    description="Dish savings from regional supermarket offers",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line of a request with its request id."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Pricing data is temporarily unavailable"},
    )


app.include_router(dishes_router)
app.include_router(ingredients_router)
app.include_router(chains_router)
app.include_router(admin_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "mealdeal-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "MealDeal API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
