class ITDeskException(Exception):
    """Base exception for the application."""
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class NotFoundException(ITDeskException):
    """Referenced ticket or request does not exist."""
    status_code = 404


class PermissionDeniedException(ITDeskException):
    """Actor may not perform the requested operation."""
    status_code = 403


class InvalidInputException(ITDeskException):
    """Malformed or missing fields at the mutation boundary."""
    status_code = 400


class ChannelDeliveryException(ITDeskException):
    """A notification channel gave up on a delivery. Never reaches callers."""
    pass


class AuditWriteException(ITDeskException):
    """The audit sink failed to record an entry."""
    pass
