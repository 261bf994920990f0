import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import auth
from config import settings
from errors import setup_exception_handlers
from logging_config import setup_logging
from routers import books, users

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # A missing signing secret is fatal, not a per-request failure
    auth.require_secret()
    logger.info("Starting up bookshelf API...")
    yield
    logger.info("Shutting down bookshelf API...")

app = FastAPI(
    title="Bookshelf API",
    description="Personal book catalogue with per-user ownership",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info(
        "%s %s -> %s (%.2f ms) ip=%s",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        request.client.host if request.client else "unknown",
    )
    return response

setup_exception_handlers(app)

# Health check endpoint
@app.get("/api/health", tags=["System"])
def health_check():
    return {
        "message": "Book Management API is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

app.include_router(users.router)
app.include_router(books.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
