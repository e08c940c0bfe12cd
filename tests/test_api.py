import pytest
from fastapi.testclient import TestClient
from jose import jwt

from conftest import RecordingEmailChannel, RecordingLineChannel, make_engine, make_sessionmaker, seed_users
from itdesk.api.dependencies import get_dispatcher
from itdesk.core.config import settings as app_settings
from itdesk.database.base_class import Base
from itdesk.database.session import get_db
from itdesk.main import app
from itdesk.schemas.notification import WebhookEventType
from itdesk.services.notification_service import NotificationDispatcher

ADMIN, OWNER, OTHER = 1, 2, 3

TICKET = {
    "title": "Laptop will not boot",
    "description": "Black screen after the update.",
    "category": "HARDWARE",
    "priority": "LOW",
}


def auth(user_id):
    token = jwt.encode({"sub": str(user_id)}, app_settings.JWT_SECRET, algorithm=app_settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def email():
    return RecordingEmailChannel()


@pytest.fixture
def line():
    return RecordingLineChannel()


@pytest.fixture
def client(settings, email, line):
    engine = make_engine()
    Session = make_sessionmaker(engine)

    async def override_get_db():
        async with Session() as session:
            yield session

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with Session() as session:
            session.add_all(seed_users())
            await session.commit()

    dispatcher = NotificationDispatcher(settings, email_channel=email, line_channel=line)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    with TestClient(app) as test_client:
        test_client.portal.call(create_schema)
        yield test_client
        test_client.portal.call(engine.dispose)

    app.dependency_overrides.clear()


def create_ticket(client, user_id=OWNER, **overrides):
    response = client.post("/v1/tickets", json={**TICKET, **overrides}, headers=auth(user_id))
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.text == "OK"


def test_only_plain_health_route_is_exposed(client):
    assert client.get("/health-detailed").status_code == 404


def test_token_required(client):
    assert client.get("/v1/tickets").status_code == 401


def test_create_ticket_dispatches_and_audits(client, email, line):
    ticket = create_ticket(client, priority="URGENT")

    assert ticket["status"] == "OPEN"
    assert ticket["reported_by"]["email"] == "owner@example.com"
    [(_, event_type, _)] = line.calls
    assert event_type == WebhookEventType.it_team_urgent
    assert [m.to for m in email.messages] == ["owner@example.com", "it-team@example.com"]

    logs = client.get("/v1/audit-logs", headers=auth(ADMIN)).json()
    [entry] = logs["audit_logs"]
    assert entry["action"] == "TICKET_CREATE"
    assert entry["entity_id"] == ticket["id"]
    assert entry["user_id"] == OWNER


def test_invalid_ticket_payload(client):
    response = client.post("/v1/tickets", json={**TICKET, "category": "COFFEE"}, headers=auth(OWNER))

    assert response.status_code == 422


def test_other_users_cannot_read_ticket(client):
    ticket = create_ticket(client)

    response = client.get(f"/v1/tickets/{ticket['id']}", headers=auth(OTHER))

    assert response.status_code == 403
    assert response.json() == {"detail": "Permission denied"}


def test_missing_ticket(client):
    response = client.get("/v1/tickets/999", headers=auth(ADMIN))

    assert response.status_code == 404
    assert response.json() == {"detail": "Ticket not found"}


def test_list_is_scoped_and_filtered(client):
    create_ticket(client, OWNER)
    create_ticket(client, OTHER, category="NETWORK")

    own = client.get("/v1/tickets", headers=auth(OWNER)).json()
    network = client.get("/v1/tickets", params={"category": "NETWORK"}, headers=auth(ADMIN)).json()
    closed = client.get("/v1/tickets", params={"status": "CLOSED"}, headers=auth(ADMIN)).json()

    assert own["pagination"]["total"] == 1
    assert [t["category"] for t in network["tickets"]] == ["NETWORK"]
    assert closed["tickets"] == []


def test_only_status_changes_notify(client, email, line):
    ticket = create_ticket(client)
    line.calls.clear()
    email.messages.clear()

    edited = client.patch(f"/v1/tickets/{ticket['id']}", json={"title": "Laptop dead"}, headers=auth(OWNER))
    assert edited.status_code == 200
    assert edited.json()["title"] == "Laptop dead"
    assert line.calls == []

    moved = client.patch(f"/v1/tickets/{ticket['id']}", json={"status": "IN_PROGRESS"}, headers=auth(ADMIN))
    assert moved.status_code == 200
    assert moved.json()["status"] == "IN_PROGRESS"
    [(_, event_type, context)] = line.calls
    assert event_type == WebhookEventType.status_update
    assert context["oldStatus"] == "OPEN"
    assert [m.to for m in email.messages] == ["owner@example.com"]


def test_delete_is_admin_only(client):
    ticket = create_ticket(client)

    assert client.delete(f"/v1/tickets/{ticket['id']}", headers=auth(OWNER)).status_code == 403
    assert client.delete(f"/v1/tickets/{ticket['id']}", headers=auth(ADMIN)).status_code == 200
    assert client.get(f"/v1/tickets/{ticket['id']}", headers=auth(ADMIN)).status_code == 404


def test_comments(client):
    ticket = create_ticket(client)
    url = f"/v1/tickets/{ticket['id']}/comments"

    created = client.post(url, json={"content": "  Tried restarting  "}, headers=auth(OWNER))
    blank = client.post(url, json={"content": "   "}, headers=auth(OWNER))
    stranger = client.post(url, json={"content": "hi"}, headers=auth(OTHER))

    assert created.status_code == 201
    assert created.json()["content"] == "Tried restarting"
    assert blank.status_code == 400
    assert blank.json() == {"detail": "Comment content is required"}
    assert stranger.status_code == 403

    detail = client.get(f"/v1/tickets/{ticket['id']}", headers=auth(OWNER)).json()
    assert [c["content"] for c in detail["comments"]] == ["Tried restarting"]


def test_email_request_flow(client, line):
    payload = {
        "thai_name": "สมหญิง ใจดี",
        "english_name": "Somying Jaidee",
        "phone": "0812345678",
        "position": "Accountant",
        "department": "Finance",
        "reply_email": "somying@example.com",
    }

    invalid = client.post("/v1/email-requests", json={**payload, "phone": "12"}, headers=auth(OWNER))
    created = client.post("/v1/email-requests", json=payload, headers=auth(OWNER))

    assert invalid.status_code == 422
    assert created.status_code == 201
    [(_, event_type, _)] = line.calls
    assert event_type == WebhookEventType.email_request

    listed = client.get("/v1/email-requests", headers=auth(OTHER)).json()
    assert listed["email_requests"] == []


def test_audit_logs_are_admin_only(client):
    response = client.get("/v1/audit-logs", headers=auth(OWNER))

    assert response.status_code == 403
    assert response.json() == {"detail": "Admin access required"}
