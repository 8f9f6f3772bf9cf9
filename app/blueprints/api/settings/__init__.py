"""
Settings API Module
Settings management endpoints split by domain.
"""

from __future__ import annotations

from flask import Blueprint, Response

from app.utils.http import error_response

# Create blueprint here to avoid circular imports
settings_api = Blueprint("settings_api", __name__)


# Error handlers
@settings_api.errorhandler(404)
def not_found(error) -> Response:
    """Handle 404 errors"""
    return error_response("Resource not found", 404)


# Import all route modules to register their endpoints (must be after blueprint creation)
from . import monitoring

_ = (monitoring,)

__all__ = ["settings_api"]
