from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.database import engine, Base, SessionLocal
from app.routers import universities, tasks, profile, dashboard
from app.config import settings
from app.seed import seed_universities
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_universities(db)
        finally:
            db.close()
    yield
    logger.info("Shutting down...")

app = FastAPI(
    title="University Application Tracker",
    description="Tracks university deadlines, requirements and application tasks",
    version="1.0.0",
    lifespan=lifespan
)

# Parse ALLOWED_ORIGINS from comma-separated string, strip whitespace
allowed_origins = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins if allowed_origins else ["*"],  # Fallback to allow all if empty
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(universities.router, prefix="/api/universities", tags=["universities"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
app.include_router(profile.router, prefix="/api/profile", tags=["profile"])
app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])

@app.get("/")
async def root():
    return {"message": "University Application Tracker API", "status": "running"}

@app.get("/health")
async def health():
    return {"status": "healthy"}
