"""
Health check schemas.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class HealthCheck(BaseModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    latency: Optional[float] = None
    error: Optional[str] = None
