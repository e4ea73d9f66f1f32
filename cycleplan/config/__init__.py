"""Application configuration module.

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Database URL, debug flag
  - Loaded from .env file via pydantic-settings

- **scheduling.py**: Domain constants for cycle range checks and
  session planning horizons
"""
from cycleplan.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
