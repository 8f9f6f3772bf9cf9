"""
Schemas Module
==============

This module provides Pydantic models for request validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.monitoring import (
    MonitoringRegisterRequest,
    MonitoringSettingsUpdate,
    TelegramMessageRequest,
)

__all__ = [
    "MonitoringRegisterRequest",
    "MonitoringSettingsUpdate",
    "TelegramMessageRequest",
]
