"""Test environment: in-memory SQLite and a fixed JWT secret, set before app modules are imported."""

import os

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("LOG_LEVEL", "WARNING")
