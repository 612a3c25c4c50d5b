"""
Authentication helpers for the placement API.
"""

from cefr_backend.common.auth.dependencies import get_current_user_id

__all__ = ['get_current_user_id']
