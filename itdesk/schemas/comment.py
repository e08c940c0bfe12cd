from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from itdesk.schemas.ticket import TicketResponse, UserSummary


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)


class CommentResponse(BaseModel):
    id: int
    ticket_id: int
    author_id: int
    author: Optional[UserSummary] = None
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class TicketDetailResponse(TicketResponse):
    comments: List[CommentResponse] = []
