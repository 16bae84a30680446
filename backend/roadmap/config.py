"""
Career Compass Configuration

This module contains the configuration settings for the assessment,
roadmap and goal-tracking backend.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directories
BACKEND_DIR = Path(__file__).parent.parent
DATA_DIR = BACKEND_DIR / "data"
CONFIG_DIR = BACKEND_DIR / "config"

# Shipped configuration files
TEMPLATE_CATALOG_PATH = Path(os.getenv("TEMPLATE_CATALOG_PATH", str(DATA_DIR / "career_templates.yaml")))
APP_CONFIG_PATH = Path(os.getenv("APP_CONFIG_PATH", str(CONFIG_DIR / "app_config.yaml")))

# Document store (SQLite via aiosqlite)
DATABASE_PATH = Path(os.getenv("DATABASE_PATH", str(DATA_DIR / "career_compass.db")))

# Collections
ASSESSMENTS_TABLE = "assessments"
ROADMAPS_TABLE = "roadmaps"
GOALS_TABLE = "goals"
PROFILES_TABLE = "profiles"

# Progress rules
# Locked steps are only disabled in the UI unless this is switched on
ENFORCE_STEP_LOCKS = os.getenv("ENFORCE_STEP_LOCKS", "false").lower() == "true"

# Serialize archive-then-insert per user inside this process
SERIALIZE_ROADMAP_CREATION = os.getenv("SERIALIZE_ROADMAP_CREATION", "true").lower() == "true"

# Recommendation fallback when no rule matches
DEFAULT_CAREER = "Software Engineer"

# API server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
USER_ID_HEADER = "X-User-Id"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
