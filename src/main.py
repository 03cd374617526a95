from contextlib import asynccontextmanager
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src import models  # noqa: F401  registers tables on Base
from src.config import settings
from src.contracts import router as contracts_router
from src.database import Base, engine
from src.logging_config import configure_logging
from src.notifications import router as notifications_router
from src.notifications.service import get_email_dispatcher

configure_logging(settings)

@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield
    # Let queued emails finish before exit
    get_email_dispatcher().shutdown(wait=True)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Busify bus ticketing API: operator contracts and notifications",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded licenses
os.makedirs(settings.STORAGE_ROOT, exist_ok=True)
app.mount(settings.STORAGE_BASE_URL, StaticFiles(directory=settings.STORAGE_ROOT), name="uploads")

# Include routers
app.include_router(
    contracts_router.router,
    prefix=f"{settings.API_V1_STR}/contracts",
    tags=["Contracts"]
)

app.include_router(
    notifications_router.router,
    prefix=f"{settings.API_V1_STR}/notifications",
    tags=["Notifications"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Busify Backend API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
