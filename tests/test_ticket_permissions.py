from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from itdesk.services.ticket_permissions import (
    PermissionCheck,
    build_update_fields,
    can_comment,
    check_permissions,
)

NOW = datetime(2026, 10, 19, 7, 0, tzinfo=timezone.utc)


def make_ticket(status="OPEN", reported_by_id=2, assigned_to_id=None, resolved_at=None):
    return SimpleNamespace(
        status=status,
        reported_by_id=reported_by_id,
        assigned_to_id=assigned_to_id,
        resolved_at=resolved_at,
    )


def make_user(id, role="USER"):
    return SimpleNamespace(id=id, role=role)


@pytest.mark.parametrize(
    "actor, expected",
    [
        (make_user(2), PermissionCheck(is_owner=True, is_admin=False)),
        (make_user(1, "ADMIN"), PermissionCheck(is_owner=False, is_admin=True)),
        (make_user(2, "ADMIN"), PermissionCheck(is_owner=True, is_admin=True)),
        (make_user(3), PermissionCheck(is_owner=False, is_admin=False)),
    ],
)
def test_check_permissions_truth_table(actor, expected):
    result = check_permissions(make_ticket(), actor)

    assert result == expected
    assert result.has_access == (expected.is_owner or expected.is_admin)


def test_owner_edits_descriptive_fields_while_open():
    patch = {"title": "New title", "description": "More detail", "category": "NETWORK", "status": "CLOSED"}

    result = build_update_fields(patch, make_ticket(), PermissionCheck(True, False), NOW)

    assert result.fields == {"title": "New title", "description": "More detail", "category": "NETWORK"}
    assert result.dropped == ["status"]


def test_owner_cannot_edit_once_work_started():
    result = build_update_fields(
        {"title": "Too late"}, make_ticket(status="IN_PROGRESS"), PermissionCheck(True, False), NOW
    )

    assert result.fields == {}
    assert result.dropped == ["title"]


def test_admin_fields_are_not_available_to_owner():
    patch = {"priority": "URGENT", "assigned_to_id": 4, "resolution": "done"}

    result = build_update_fields(patch, make_ticket(), PermissionCheck(True, False), NOW)

    assert result.fields == {}
    assert sorted(result.dropped) == ["assigned_to_id", "priority", "resolution"]


def test_admin_resolving_stamps_resolved_at():
    result = build_update_fields(
        {"status": "RESOLVED", "resolution": "Replaced toner"},
        make_ticket(status="IN_PROGRESS"),
        PermissionCheck(False, True),
        NOW,
    )

    assert result.fields["status"] == "RESOLVED"
    assert result.fields["resolution"] == "Replaced toner"
    assert result.fields["resolved_at"] == NOW


def test_admin_reopening_clears_resolved_at():
    ticket = make_ticket(status="RESOLVED", resolved_at=NOW)

    result = build_update_fields({"status": "OPEN"}, ticket, PermissionCheck(False, True), NOW)

    assert result.fields == {"status": "OPEN", "resolved_at": None}


def test_status_change_without_prior_resolution_leaves_resolved_at_alone():
    result = build_update_fields(
        {"status": "IN_PROGRESS"}, make_ticket(), PermissionCheck(False, True), NOW
    )

    assert "resolved_at" not in result.fields


def test_admin_can_unassign_with_explicit_none():
    result = build_update_fields(
        {"assigned_to_id": None}, make_ticket(assigned_to_id=4), PermissionCheck(False, True), NOW
    )

    assert result.fields == {"assigned_to_id": None}


def test_admin_who_is_not_owner_cannot_edit_title():
    result = build_update_fields(
        {"title": "Renamed", "priority": "HIGH"}, make_ticket(), PermissionCheck(False, True), NOW
    )

    assert result.fields == {"priority": "HIGH"}
    assert result.dropped == ["title"]


def test_admin_owner_gets_both_field_sets():
    result = build_update_fields(
        {"title": "Renamed", "priority": "HIGH"}, make_ticket(), PermissionCheck(True, True), NOW
    )

    assert result.fields == {"title": "Renamed", "priority": "HIGH"}
    assert result.dropped == []


@pytest.mark.parametrize(
    "actor, allowed",
    [
        (make_user(2), True),
        (make_user(1, "ADMIN"), True),
        (make_user(4), True),
        (make_user(3), False),
    ],
)
def test_can_comment(actor, allowed):
    assert can_comment(make_ticket(assigned_to_id=4), actor) is allowed


def test_owner_cannot_resolve_own_open_ticket():
    result = build_update_fields({"status": "RESOLVED"}, make_ticket(), PermissionCheck(True, False), NOW)

    assert result.fields == {}
    assert result.dropped == ["status"]


@pytest.mark.parametrize("status", ["IN_PROGRESS", "RESOLVED", "CLOSED", "CANCELLED"])
def test_owner_edits_ignored_unless_open(status):
    patch = {"title": "t", "description": "d", "category": "OTHER"}

    result = build_update_fields(patch, make_ticket(status=status), PermissionCheck(True, False), NOW)

    assert result.fields == {}
