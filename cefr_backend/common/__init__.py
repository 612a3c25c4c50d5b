"""
Common utilities and shared infrastructure for the CEFR placement backend.

Key components:
1. Logging - Centralized logging configuration
2. Exceptions - Error types shared by services and controllers
3. Serialization - Dataclass and enum conversion to plain data
"""

from cefr_backend.common.logger import app_logger

__all__ = ['app_logger']
