from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any

# HTTP response models shared by the API routers


class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    data: Optional[Dict[str, Any]] = None


class DeliveryError(BaseModel):
    userId: int
    error: str
    habitId: Optional[str] = None


class ReminderRunResponse(BaseModel):
    ok: bool = True
    due: int = Field(0, ge=0)
    sent: int = Field(0, ge=0)
    skippedBlocked: int = Field(0, ge=0)
    errors: List[DeliveryError] = Field(default_factory=list)


class AnalyticsResponse(BaseModel):
    """Habits with their reconstructed check history"""
    userId: int
    habits: List[Dict[str, Any]] = Field(default_factory=list)
