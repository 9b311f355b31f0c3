"""Configuration module for the Course Share API.

This module provides centralized configuration management, including directory
paths, database and API server settings, authentication and content defaults.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- Database Configuration ---

# SQLAlchemy URL. Defaults to a SQLite file under data/; point it at
# PostgreSQL (postgresql+psycopg://...) for deployments.
DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/course_share.db"
)

# Echo all SQL statements (debugging only)
SQL_ECHO: bool = os.getenv("SQL_ECHO", "false").lower() == "true"

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,"
    "http://127.0.0.1:8080",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))  # 7 days
)

# Admin token for admin registration (set via ADMIN_TOKEN environment variable)
ADMIN_TOKEN: Optional[str] = os.getenv("ADMIN_TOKEN")

# --- Content Configuration ---

# Image shown for courses uploaded without one
DEFAULT_COURSE_IMAGE_URL: str = os.getenv(
    "DEFAULT_COURSE_IMAGE_URL",
    "https://www.shutterstock.com/image-photo/"
    "elearning-education-internet-lessons-online-600nw-2158034833.jpg",
)

# Avatars are generated from a seed string by DiceBear
AVATAR_BASE_URL: str = os.getenv(
    "AVATAR_BASE_URL", "https://api.dicebear.com/7.x/avataaars/svg"
)
