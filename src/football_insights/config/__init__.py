"""Configuration module.

Usage:
    from football_insights.config import get_settings

    settings = get_settings()
    print(settings.football_data_api_key)
    print(settings.bookmaker_margin)
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
