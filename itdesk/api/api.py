from fastapi import APIRouter

from itdesk.api.endpoints import audit_logs, email_requests, tickets

api_router = APIRouter()
api_router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
api_router.include_router(email_requests.router, prefix="/email-requests", tags=["email-requests"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
