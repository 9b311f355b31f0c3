"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import auth, course, dashboard, library, profile
from config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS
from core.logging_config import setup_logging

APP_VERSION = "1.0.0"

# Setup logging
setup_logging()

# Initialize FastAPI application
app = FastAPI(
    title="Course Share API",
    description="Backend API for sharing, collecting and completing courses.",
    version=APP_VERSION,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(course.router)
app.include_router(library.router)
app.include_router(dashboard.router)


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Course Share API",
        "version": APP_VERSION,
        "description": "Backend API for sharing, collecting and completing courses.",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    print(f"🌐 Serving on {server_url}")
    print(f"📚 API docs: {server_url}/docs")
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
