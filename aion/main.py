"""
AION - FastAPI Application Entry Point.

Workflow automation backend: stores node/edge graphs, runs them through the
workflow engine and exposes webhook triggers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from aion.config import settings
from aion.api.routes import integrations, runs, webhooks, workflows
from aion.integrations import build_default_registry
from aion.storage.memory import run_storage, workflow_storage


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Loaded {len(app.state.registry)} integrations")
    if settings.BRANCH_ROUTING:
        logger.info("Branch routing enabled: labelled edges follow the source's branch output")

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Workflow Automation API

Build automations as graphs of nodes wired by edges.

### Features
- **Nodes**: Trigger/data nodes or calls to integration actions (OpenAI, Telegram, Sheets...)
- **Edges**: Dependencies; a node runs after every node it depends on
- **Templates**: `{{NodeLabel.field}}` and `{{trigger.field}}` in node data
- **Triggers**: Manual runs, generic webhooks, Telegram bot updates

### Quick Start
1. List integrations: `GET /integrations`
2. Store a workflow: `POST /workflows`
3. Run it: `POST /workflows/{workflow_id}/run`
4. Inspect the run: `GET /runs/{run_id}`
    """,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Built once; shared by every run
app.state.registry = build_default_registry()


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(workflows.router)
app.include_router(runs.router)
app.include_router(webhooks.router)
app.include_router(integrations.router)


# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": "Workflow automation engine",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "workflows": "/workflows",
            "runs": "/runs",
            "integrations": "/integrations",
            "webhook": "/webhooks/{workflow_id}/{node_id}",
            "telegram_webhook": "/webhooks/telegram/{workflow_id}",
        },
    }


@app.get("/health", tags=["Root"])
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "workflows_count": len(workflow_storage),
        "runs_count": len(run_storage),
        "integrations_count": len(app.state.registry),
    }


# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
        },
    )
