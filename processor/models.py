"""Data models for event processing and delivery."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Event:
    """Event row from the remote feed."""
    name: str
    date: str
    location: str
    category: Optional[str] = None
    attendance: Optional[str] = None
    notes: Optional[str] = None
    starts_at: Optional[datetime] = None


@dataclass
class DeliveryResult:
    """Result of a delivery pass."""
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
