from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class PersonRef(BaseModel):
    name: str
    email: str
    department: Optional[str] = None

    class Config:
        frozen = True


class TicketSnapshot(BaseModel):
    """Point-in-time copy of a ticket handed to composers and channels."""
    ticket_id: int
    title: str
    description: str
    category: str
    priority: str
    status: str
    reported_by: PersonRef
    assigned_to: Optional[PersonRef] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        frozen = True


class EmailRequestSnapshot(BaseModel):
    thai_name: str
    english_name: str
    phone: str
    nickname: str = ""
    position: str
    department: str
    reply_email: str
    requested_at: datetime

    class Config:
        frozen = True


class EmailMessage(BaseModel):
    to: str
    subject: str
    html: str
    text: str

    class Config:
        frozen = True


class ChatEventKind(str, Enum):
    new_ticket = "new_ticket"
    status_update = "status_update"
    it_team_escalation = "it_team_escalation"


class WebhookEventType(str, Enum):
    new_ticket = "new_ticket"
    status_update = "status_update"
    it_team_urgent = "it_team_urgent"
    email_request = "email_request"


class DeliveryResult(BaseModel):
    channel: str  # "email" | "line"
    kind: str
    recipient: Optional[str] = None
    delivered: bool


class DispatchReport(BaseModel):
    """What one dispatch call attempted. Returned for logging and tests only."""
    event: str
    deliveries: List[DeliveryResult] = []

    @property
    def delivered_count(self) -> int:
        return sum(1 for d in self.deliveries if d.delivered)

    def summary(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "attempted": len(self.deliveries),
            "delivered": self.delivered_count,
        }
