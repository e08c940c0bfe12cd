# Import all models here to ensure they are registered with SQLAlchemy
from itdesk.models.user import User
from itdesk.models.ticket import Ticket, TicketView
from itdesk.models.comment import TicketComment
from itdesk.models.email_request import EmailRequest
from itdesk.models.audit_log import AuditLog
