"""
Configuration module for the beauty advisor service.

This module provides centralized configuration management using pydantic-settings.
All environment variables and configuration values should be accessed through this module.

Usage:
    from config import get_settings

    settings = get_settings()
    limit = settings.recommendation_limit
    is_dev = settings.is_development
"""

from config.settings import Settings, get_settings
from config.constants import ParseStatus, SkinTone, Undertone

__all__ = ["Settings", "get_settings", "SkinTone", "Undertone", "ParseStatus"]
