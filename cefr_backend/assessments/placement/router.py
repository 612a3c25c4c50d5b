"""
Placement Test Router

This module exports the router from the placement controller module.
"""

import logging
from cefr_backend.assessments.placement.controller import router

logger = logging.getLogger(__name__)
logger.info(f"Placement router loaded with {len(router.routes)} routes")

__all__ = ['router']
