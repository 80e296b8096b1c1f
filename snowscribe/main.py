"""Main FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from snowscribe import __version__
from snowscribe.api.dependencies import get_background_tasks, get_config
from snowscribe.api.endpoints import router
from snowscribe.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Snowscribe AI service {__version__} starting")
    yield
    # Billing and audit writes still in flight must finish before exit
    await get_background_tasks().drain(timeout=get_config().shutdown_drain_seconds)
    logger.info("Snowscribe AI service stopped")


# Create FastAPI application
app = FastAPI(
    title="Snowscribe AI",
    description=(
        "AI tool orchestration for the Snowscribe writing app: context formatting, "
        "model routing, chat sessions, credit billing and interaction auditing."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "AI",
            "description": "Stateless AI calls for a project with caller-supplied history.",
        },
        {
            "name": "Sessions",
            "description": "Server-side chat sessions bound to one project and one tool.",
        },
        {
            "name": "Tools",
            "description": "The AI tools available to writers.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("snowscribe.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
