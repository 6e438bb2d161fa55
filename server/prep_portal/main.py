import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prep_portal.config import settings
from prep_portal import database

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create tables and the bootstrap admin on startup"""
    from prep_portal.services.auth import ensure_bootstrap_admin

    database.init_db()
    db = database.SessionLocal()
    try:
        ensure_bootstrap_admin(db)
    finally:
        db.close()

    logger.info("🚀 %s is starting...", settings.app_name)
    logger.info("📚 Database: %s", settings.database_url)
    logger.info("🤖 AI Model: %s", settings.openai_model)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.api_version,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


# Import and include routers
from prep_portal.routes import admin, auth, student, study, teacher

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(teacher.router, prefix="/api/teacher", tags=["Teacher"])
app.include_router(student.router, prefix="/api/student", tags=["Student"])
app.include_router(study.router, prefix="/api/study", tags=["Study"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("prep_portal.main:app", host=settings.host, port=settings.port, reload=settings.debug)
