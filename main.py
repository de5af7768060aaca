"""
Portfolio Catalog Backend
Project catalog served from a remote table with a local cache that survives outages
"""

from pathlib import Path
import logging
import traceback

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from auth import auth_router
from routers.projects_router import projects_router
from routers.storage_router import storage_router
from database import init_db, AsyncSessionLocal
from config.settings import settings, IS_PRODUCTION
from services.project_sync import build_project_sync

# ============================================================================
# LOGGING
# ============================================================================

# Logging setup - write ALL events to /logs/app.log
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP SETUP
# ============================================================================

app = FastAPI(title="Portfolio Catalog")


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "data": {}, "error": "internal_error", "message": "Internal Server Error"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: HSTS, X-Frame-Options, X-Content-Type-Options"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        # Only set in production where HTTPS is guaranteed
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# STARTUP
# ============================================================================

@app.on_event("startup")
async def initialize_database():
    """Create the remote projects table; an unreachable remote is not fatal."""
    try:
        if await init_db():
            logger.info("Remote project table ready")
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Remote database initialization failed, continuing with local storage: {e}")


@app.on_event("startup")
async def initialize_project_sync():
    """Build the process-wide sync coordinator."""
    app.state.project_sync = build_project_sync(settings, AsyncSessionLocal)
    logger.info(
        f"Project sync ready (remote {'configured' if AsyncSessionLocal else 'not configured'}, "
        f"local storage at {settings.local_storage_dir})"
    )

# ============================================================================
# INCLUDE ROUTERS
# ============================================================================
app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(storage_router)


@app.get("/api/health")
async def health():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
