"""
Workers module for background services.

This module contains:
- monitoring_scheduler: the periodic environment check (start/stop, ticks, status)
"""

__all__ = [
    "CheckSummary",
    "MonitoringScheduler",
]

from app.workers.monitoring_scheduler import CheckSummary, MonitoringScheduler
