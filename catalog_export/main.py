from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from catalog_export.core.config import settings
from catalog_export.core.logging import setup_logger
from catalog_export.api.export_routes import router as export_router
from catalog_export.core.db import initialize_database, close_engine, check_database_connection

# Initialize settings and logger
logger = setup_logger(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(export_router)  # Export endpoints (already has /admin/exports prefix)


@app.on_event("startup")
async def startup_event():
    """Initialize application and database on startup."""
    logger.info(f"{settings.APP_NAME} started in {settings.ENV} environment")
    settings.EXPORT_DIR.mkdir(parents=True, exist_ok=True)

    try:
        logger.info("Initializing PostgreSQL database...")
        await initialize_database()
        logger.info("✅ Database initialized successfully")
    except Exception as e:
        logger.error(f"❌ Failed to initialize database: {str(e)}")
        logger.warning("Application starting without database. Exports will fail until it is reachable.")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown."""
    logger.info("Shutting down application...")

    try:
        await close_engine()
        logger.info("✅ Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database: {str(e)}")


@app.get("/health")
async def health_check():
    """Health check endpoint with database status."""
    db_available, db_error = await check_database_connection()

    return {
        "status": "ok",
        "database": {
            "available": db_available,
            "error": db_error
        }
    }
