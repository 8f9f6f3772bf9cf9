"""
Enums Module
============

This module provides enumeration types for the GrowWatch application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.common import (
    MEASURED_PARAMETERS,
    DiscoveryStrategy,
    MessageKind,
    NotificationSeverity,
    ParameterKind,
)
from app.enums.growth import DEFAULT_STAGE, GrowthStage, normalize_stage

__all__ = [
    # Growth enums
    "GrowthStage",
    "DEFAULT_STAGE",
    "normalize_stage",
    # Common enums
    "NotificationSeverity",
    "ParameterKind",
    "MEASURED_PARAMETERS",
    "MessageKind",
    "DiscoveryStrategy",
]
