"""
Backend initialization and configuration.
"""

# API configuration
API_PREFIX = "/api"
API_TITLE = "Hiring Tracker API"
API_VERSION = "1.0.0"

# CORS settings for React frontend
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
