"""
Monitoring Schemas
==================

Request schemas for the monitoring, settings and notification endpoints.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.enums import GrowthStage, MessageKind, normalize_stage


class MonitoringRegisterRequest(BaseModel):
    """Request schema for starting monitoring.

    Out-of-range intervals are clamped to 1-60 by the scheduler rather than
    rejected, so any integer is accepted here.
    """
    interval_minutes: Optional[int] = Field(default=None, description="Minutes between checks (clamped to 1-60)")


class MonitoringSettingsUpdate(BaseModel):
    """Partial update of the monitoring settings."""
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    interval_minutes: Optional[int] = Field(default=None, ge=1, le=60, description="Minutes between checks")
    stage: Optional[GrowthStage] = Field(default=None, description="Growth stage to evaluate against")
    monitor_temperature: Optional[bool] = None
    monitor_humidity: Optional[bool] = None
    monitor_soil_humidity: Optional[bool] = None
    notify_inactive: Optional[bool] = None
    use_active_cycle_stage: Optional[bool] = None
    bot_token: Optional[str] = Field(default=None, max_length=200)
    chat_id: Optional[str] = Field(default=None, max_length=64)

    @field_validator("stage", mode="before")
    @classmethod
    def normalize_stage_name(cls, v):
        """Accept any known spelling of a stage (e.g. 'Floración')."""
        if v is None:
            return v
        stage = normalize_stage(v)
        if stage is None:
            raise ValueError(f"Unknown growth stage: {v}")
        return stage

    @field_validator("chat_id", mode="before")
    @classmethod
    def chat_id_to_str(cls, v):
        """Telegram chat ids are often sent as numbers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def to_updates(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TelegramMessageRequest(BaseModel):
    """Request schema for a free-form chat message."""
    message: str = Field(..., min_length=1, max_length=4000, description="Message body")
    type: MessageKind = Field(default=MessageKind.INFO, description="info, success, warning or error")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        """Normalize type string to enum."""
        if isinstance(v, str):
            return MessageKind(v.lower())
        return v
