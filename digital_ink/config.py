"""
Digital Ink configuration.

Settings are class attributes read from the environment at import time, with
one class per runtime environment.
"""
import os
from functools import lru_cache
from typing import Optional


class Config:
    """Base configuration"""

    # Extraction backend
    API_BASE_URL = os.environ.get("DIGITAL_INK_API_URL", "http://localhost:8000")
    REQUEST_TIMEOUT = float(os.environ.get("DIGITAL_INK_REQUEST_TIMEOUT", "60"))

    # Job polling (2s x 300 attempts = 10 minutes)
    POLL_INTERVAL_MS = int(os.environ.get("DIGITAL_INK_POLL_INTERVAL_MS", "2000"))
    POLL_MAX_ATTEMPTS = int(os.environ.get("DIGITAL_INK_POLL_MAX_ATTEMPTS", "300"))

    # Page rendering
    RENDER_SCALE = 1.5

    # Drawing tools
    DEFAULT_BRUSH_COLOR = "#000000"
    DEFAULT_BRUSH_WIDTH = 2.0
    MIN_BRUSH_WIDTH = 1
    MAX_BRUSH_WIDTH = 10
    ERASER_COLOR = "#FFFFFF"
    ERASER_WIDTH = 20.0
    UNDO_HISTORY_SIZE = 50

    # Logging
    LOG_LEVEL = os.environ.get("DIGITAL_INK_LOG_LEVEL", "INFO")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    API_BASE_URL = "http://extractor.test"
    POLL_INTERVAL_MS = 0
    POLL_MAX_ATTEMPTS = 5


@lru_cache()
def get_config(env: Optional[str] = None):
    """Get configuration by environment name"""
    env = env or os.environ.get("DIGITAL_INK_ENV", "development")
    configs = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }
    return configs.get(env, DevelopmentConfig)
