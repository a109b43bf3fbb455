"""
Configuration management for the portfolio API.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Artist Portfolio API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for the portfolio gallery, store and admin CMS"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Record store. Empty means "no backend": public reads degrade to empty
    # results and CMS writes answer 503.
    DATABASE_URL: str = ""

    # Cloudinary object storage
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Admin gate
    # bcrypt hash, see generate_password_hash.py
    ADMIN_PASSWORD_HASH: str = ""
    # Google accounts allowed into the CMS, JSON list in the environment
    ADMIN_EMAILS: List[str] = []
    FIREBASE_PROJECT_ID: str = ""

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "change-me-in-production-use-openssl-rand-hex-32"
    JWT_EXPIRE_MINUTES: int = 60
    # Set False for plain-http local development
    COOKIE_SECURE: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
