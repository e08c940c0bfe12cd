from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class TicketCategory(str, Enum):
    hardware = "HARDWARE"
    software = "SOFTWARE"
    network = "NETWORK"
    account = "ACCOUNT"
    email = "EMAIL"
    printer = "PRINTER"
    other = "OTHER"


class TicketPriority(str, Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    urgent = "URGENT"


class TicketStatus(str, Enum):
    open = "OPEN"
    in_progress = "IN_PROGRESS"
    resolved = "RESOLVED"
    closed = "CLOSED"
    cancelled = "CANCELLED"


ESCALATION_PRIORITIES = {TicketPriority.high.value, TicketPriority.urgent.value}


class TicketCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: TicketCategory
    priority: TicketPriority = TicketPriority.medium

    @validator("title", "description", pre=True)
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TicketUpdate(BaseModel):
    """Partial update. Fields the actor may not change are dropped by the permission policy."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    resolution: Optional[str] = Field(None, max_length=5000)
    assigned_to_id: Optional[int] = Field(None, gt=0)

    @validator("title", "description", "resolution", pre=True)
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class TicketFilters(BaseModel):
    status: Optional[TicketStatus] = None
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    page: int = 1
    limit: int = 10


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    display_name: str
    department: Optional[str] = None

    class Config:
        from_attributes = True


class TicketResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    priority: str
    status: str
    resolution: Optional[str] = None
    reported_by_id: int
    assigned_to_id: Optional[int] = None
    reported_by: Optional[UserSummary] = None
    assigned_to: Optional[UserSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TicketListItem(TicketResponse):
    comment_count: int = 0
    is_new: bool = False


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PaginatedTickets(BaseModel):
    tickets: List[TicketListItem]
    pagination: Pagination
