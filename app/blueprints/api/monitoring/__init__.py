"""
Monitoring API Module
Start/stop control, status and on-demand checks of the environment monitor.
"""

from __future__ import annotations

from flask import Blueprint

# Create blueprints here to avoid circular imports
monitoring_api = Blueprint("monitoring_api", __name__)
cron_api = Blueprint("cron_api", __name__)

# Import all route modules to register their endpoints (must be after blueprint creation)
from . import control, cron

_ = (control, cron)

__all__ = ["monitoring_api", "cron_api"]
