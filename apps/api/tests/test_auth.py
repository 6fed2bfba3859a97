"""Tests for login, session endpoints and invitation acceptance."""

from datetime import timedelta

import pytest

from app.core.deps import COOKIE_NAME
from app.core.security import verify_password
from app.db.enums import Role
from app.db.models import AuditLog, VerificationToken
from app.services import user_service
from app.utils.datetime_parsing import utcnow


@pytest.fixture
def invited_reviewer(db):
    """An inactive reviewer plus the raw token from their invitation link."""
    user, raw_token = user_service.create_invited_reviewer(
        db, email="invitee@example.com", first_name="Ivy", last_name="Vitee"
    )
    return user, raw_token


# =============================================================================
# Login / session
# =============================================================================

@pytest.mark.asyncio
async def test_login_sets_session_cookie(client, make_user):
    user = make_user(Role.ADMIN, email="admin@example.com", password="correct-horse")

    response = await client.post(
        "/api/auth/login", json={"email": "Admin@Example.com", "password": "correct-horse"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["userId"] == str(user.id)
    assert data["role"] == "ADMIN"
    assert f"{COOKIE_NAME}=" in response.headers["set-cookie"]
    assert "httponly" in response.headers["set-cookie"].lower()


@pytest.mark.asyncio
async def test_login_wrong_password(client, make_user):
    make_user(Role.ADMIN, email="admin@example.com", password="correct-horse")

    response = await client.post(
        "/api/auth/login", json={"email": "admin@example.com", "password": "wrong"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


@pytest.mark.asyncio
async def test_login_rejected_before_invitation_accepted(client, make_user):
    make_user(Role.REVIEWER, email="pending@example.com", password="some-pass", activated=False)

    response = await client.post(
        "/api/auth/login", json={"email": "pending@example.com", "password": "some-pass"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


@pytest.mark.asyncio
async def test_me_returns_session(client_for, organizer_user):
    response = await client_for(organizer_user).get("/api/auth/me")

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == organizer_user.email
    assert data["displayName"] == "Olga Organizer"
    assert data["orgId"] == str(organizer_user.organization_id)


@pytest.mark.asyncio
async def test_me_without_cookie(client):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_revoked_session_rejected(client_for, admin_user, db):
    c = client_for(admin_user)
    user_service.revoke_all_sessions(db, admin_user.id)

    response = await c.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Session revoked"}


@pytest.mark.asyncio
async def test_logout_clears_cookie(client_for, admin_user):
    response = await client_for(admin_user).post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert f'{COOKIE_NAME}=""' in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_logout_revokes_issued_cookie(client, client_for, admin_user, db):
    c = client_for(admin_user)
    issued = c.cookies.get(COOKIE_NAME)
    version = admin_user.token_version

    response = await c.post("/api/auth/logout")
    assert response.status_code == 200
    db.refresh(admin_user)
    assert admin_user.token_version == version + 1

    client.cookies.set(COOKIE_NAME, issued)
    replay = await client.get("/api/auth/me")

    assert replay.status_code == 401
    assert replay.json() == {"error": "Session revoked"}


@pytest.mark.asyncio
async def test_logout_requires_session(client):
    response = await client.post("/api/auth/logout", headers={"X-Requested-With": "XMLHttpRequest"})

    assert response.status_code == 401


# =============================================================================
# Invitation check (GET)
# =============================================================================

@pytest.mark.asyncio
async def test_check_valid_invitation(client, invited_reviewer):
    user, raw_token = invited_reviewer

    response = await client.get(
        "/api/auth/accept-invitation", params={"token": raw_token, "email": "INVITEE@example.com"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["user"]["email"] == "invitee@example.com"
    assert data["user"]["firstName"] == "Ivy"
    assert data["user"]["organizationName"] is None


@pytest.mark.asyncio
async def test_check_missing_parameters(client):
    response = await client.get("/api/auth/accept-invitation", params={"email": "a@example.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing token or email"}


@pytest.mark.asyncio
async def test_check_wrong_token(client, invited_reviewer):
    response = await client.get(
        "/api/auth/accept-invitation",
        params={"token": "0" * 64, "email": "invitee@example.com"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid invitation link"}


@pytest.mark.asyncio
async def test_check_expired_token(client, db, invited_reviewer):
    _, raw_token = invited_reviewer
    record = db.query(VerificationToken).one()
    record.expires = utcnow() - timedelta(minutes=1)
    db.flush()

    response = await client.get(
        "/api/auth/accept-invitation", params={"token": raw_token, "email": "invitee@example.com"}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invitation has expired"}
    # A check never consumes the token
    assert db.query(VerificationToken).count() == 1


# =============================================================================
# Invitation acceptance (POST)
# =============================================================================

@pytest.mark.asyncio
async def test_accept_invitation_activates_account(client, db, invited_reviewer):
    user, raw_token = invited_reviewer

    response = await client.post(
        "/api/auth/accept-invitation",
        json={"token": raw_token, "email": "invitee@example.com", "password": "new-password"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Account setup complete. You can now sign in.",
    }
    db.refresh(user)
    assert user.email_verified is not None
    assert verify_password("new-password", user.password_hash)
    assert db.query(VerificationToken).count() == 0

    audit = db.query(AuditLog).filter(AuditLog.entity_id == str(user.id)).one()
    assert audit.action == "ACCEPT_INVITATION"
    assert "invitee@example.com" not in str(audit.changes)

    login = await client.post(
        "/api/auth/login", json={"email": "invitee@example.com", "password": "new-password"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_invitation_is_single_use(client, invited_reviewer):
    _, raw_token = invited_reviewer
    body = {"token": raw_token, "email": "invitee@example.com", "password": "new-password"}

    first = await client.post("/api/auth/accept-invitation", json=body)
    assert first.status_code == 200

    second = await client.post("/api/auth/accept-invitation", json=body)
    assert second.status_code == 400
    assert second.json() == {"error": "Invalid or expired invitation link"}


@pytest.mark.asyncio
async def test_accept_expired_invitation_deletes_token(client, db, invited_reviewer):
    user, raw_token = invited_reviewer
    record = db.query(VerificationToken).one()
    record.expires = utcnow() - timedelta(days=1)
    db.flush()

    response = await client.post(
        "/api/auth/accept-invitation",
        json={"token": raw_token, "email": "invitee@example.com", "password": "new-password"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Invitation has expired. Please contact your administrator for a new invitation."
    }
    assert db.query(VerificationToken).count() == 0
    db.refresh(user)
    assert user.email_verified is None


@pytest.mark.asyncio
async def test_accept_with_short_password(client, invited_reviewer):
    _, raw_token = invited_reviewer

    response = await client.post(
        "/api/auth/accept-invitation",
        json={"token": raw_token, "email": "invitee@example.com", "password": "123"},
    )

    assert response.status_code == 400
    assert "password" in response.json()["details"]["fieldErrors"]
