"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import Base, engine, SessionLocal
from .auth import models as auth_models  # noqa: F401  register tables
from .core import audit_models  # noqa: F401
from .clinic import models as clinic_models  # noqa: F401
from .auth.router import router as auth_router
from .users.router import router as users_router, admin_router
from .clinic.router import router as clinic_router
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .core.bootstrap import bootstrap_admin_if_needed

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

logger.info(f"Starting Spark Therapy API ({settings.environment})...")
db = SessionLocal()
try:
    bootstrap_admin_if_needed(db)
except Exception as e:
    logger.error(f"Bootstrap process failed: {str(e)}")
finally:
    db.close()

app = FastAPI(
    title="Spark Therapy API",
    description="Authentication and access control for the Spark Therapy clinic",
    version="1.0.0"
)

# Register exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(users_router, prefix="/api/v1/users", tags=["Users"])
app.include_router(admin_router, prefix="/api/v1/admin", tags=["Admin"])
app.include_router(clinic_router, prefix="/api/v1")


@app.get("/")
def root():
    """
    Root endpoint.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Spark Therapy API", "version": app.version}
