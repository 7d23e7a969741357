"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.alerts import routes as alerts_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Make sure the watermark table exists."""
    from app.database import init_db
    await init_db()
    yield


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Advisor Alerts API",
    description="Actionable alerts over each advisor's book of business",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(alerts_routes.router, prefix=settings.API_V1_PREFIX, tags=["Advisor Alerts"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Advisor Alerts API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
