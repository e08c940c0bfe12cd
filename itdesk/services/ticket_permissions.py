"""
Who may change what on a ticket.

Admins own the workflow fields (status, assignee, priority, resolution).
The reporter may edit the descriptive fields while the ticket is still OPEN.
Anything else in a patch is dropped, not rejected.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from itdesk.schemas.ticket import TicketStatus

ADMIN_ROLE = "ADMIN"

ADMIN_FIELDS = ("status", "assigned_to_id", "priority", "resolution")
OWNER_FIELDS = ("title", "description", "category")


@dataclass(frozen=True)
class PermissionCheck:
    is_owner: bool
    is_admin: bool

    @property
    def has_access(self) -> bool:
        return self.is_owner or self.is_admin


@dataclass
class UpdateFields:
    fields: Dict[str, Any] = field(default_factory=dict)
    dropped: List[str] = field(default_factory=list)


def is_admin(actor) -> bool:
    return getattr(actor, "role", None) == ADMIN_ROLE


def check_permissions(ticket, actor) -> PermissionCheck:
    return PermissionCheck(
        is_owner=ticket.reported_by_id == actor.id,
        is_admin=is_admin(actor),
    )


def can_view(ticket, actor) -> bool:
    return check_permissions(ticket, actor).has_access


def can_comment(ticket, actor) -> bool:
    """Reporter, admins and the current assignee may comment."""
    if can_view(ticket, actor):
        return True
    return ticket.assigned_to_id is not None and ticket.assigned_to_id == actor.id


def build_update_fields(
    patch: Dict[str, Any],
    ticket,
    permissions: PermissionCheck,
    now: datetime,
) -> UpdateFields:
    """
    Filter a partial update down to the fields this actor may write.

    `patch` holds only the keys the caller actually sent; an explicit None for
    assigned_to_id means unassign. Setting status to RESOLVED stamps resolved_at
    with `now`, any other status clears it.
    """
    result = UpdateFields()

    if permissions.is_admin:
        for name in ADMIN_FIELDS:
            if name not in patch:
                continue
            value = patch[name]
            if value is None and name != "assigned_to_id":
                continue
            result.fields[name] = value

        status = result.fields.get("status")
        if status == TicketStatus.resolved.value:
            result.fields["resolved_at"] = now
        elif status is not None and ticket.resolved_at is not None:
            result.fields["resolved_at"] = None

    if permissions.is_owner and ticket.status == TicketStatus.open.value:
        for name in OWNER_FIELDS:
            if patch.get(name) is not None:
                result.fields[name] = patch[name]

    result.dropped = [name for name in patch if name not in result.fields]
    return result
