from sqlalchemy.ext.asyncio import AsyncSession

from itdesk.models.email_request import EmailRequest
from itdesk.models.user import User
from itdesk.schemas.email_request import EmailRequestCreate, EmailRequestResponse, PaginatedEmailRequests
from itdesk.schemas.notification import EmailRequestSnapshot
from itdesk.services.base_service import BaseService
from itdesk.services.ticket_permissions import is_admin
from itdesk.services.ticket_service import as_utc, build_pagination, clamp_pagination, utcnow
from itdesk.utils.logger import logger


class EmailRequestRepository(BaseService):
    model = EmailRequest


email_request_repository = EmailRequestRepository()


def build_email_request_snapshot(email_request: EmailRequest) -> EmailRequestSnapshot:
    return EmailRequestSnapshot(
        thai_name=email_request.thai_name,
        english_name=email_request.english_name,
        phone=email_request.phone,
        nickname=email_request.nickname or "",
        position=email_request.position,
        department=email_request.department,
        reply_email=email_request.reply_email,
        requested_at=as_utc(email_request.created_at) or utcnow(),
    )


class EmailRequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_email_request(self, data: EmailRequestCreate, requester: User) -> EmailRequest:
        email_request = await email_request_repository.create(
            self.db,
            obj_in={**data.model_dump(), "requested_by_id": requester.id},
        )
        logger.info(f"Email request #{email_request.id} for {email_request.english_name} created by user {requester.id}")
        return email_request

    async def get_email_requests(self, viewer: User, page: int = 1, limit: int = 10) -> PaginatedEmailRequests:
        """Admins see every request; everyone else only their own."""
        page, limit = clamp_pagination(page, limit)
        conditions = [] if is_admin(viewer) else [EmailRequest.requested_by_id == viewer.id]

        requests = await email_request_repository.get_multi(
            self.db,
            filters=conditions,
            order_by=[EmailRequest.created_at.desc(), EmailRequest.id.desc()],
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await email_request_repository.count(self.db, filters=conditions)
        return PaginatedEmailRequests(
            email_requests=[EmailRequestResponse.model_validate(r) for r in requests],
            pagination=build_pagination(page, limit, total),
        )
