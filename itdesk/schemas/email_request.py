import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, validator

from itdesk.schemas.ticket import Pagination

PHONE_PATTERN = re.compile(r"^[0-9\-\s\+\(\)]{10,15}$")


class EmailRequestCreate(BaseModel):
    thai_name: str
    english_name: str
    phone: str
    nickname: str = ""
    position: str
    department: str
    reply_email: EmailStr

    @validator("thai_name", "english_name", "position", "department")
    def required_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v

    @validator("nickname")
    def strip_nickname(cls, v):
        return (v or "").strip()

    @validator("phone")
    def validate_phone(cls, v):
        if not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number format")
        return v


class EmailRequestResponse(BaseModel):
    id: int
    thai_name: str
    english_name: str
    phone: str
    nickname: str
    position: str
    department: str
    reply_email: str
    requested_by_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaginatedEmailRequests(BaseModel):
    email_requests: List[EmailRequestResponse]
    pagination: Pagination
