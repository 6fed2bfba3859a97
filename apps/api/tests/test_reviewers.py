"""Tests for reviewer roster management and reviewer provisioning."""

import re
from urllib.parse import parse_qs, urlparse

import pytest

from app.core.security import hash_verification_token
from app.db.enums import Role
from app.db.models import AuditLog, User, VerificationToken


def _url(event) -> str:
    return f"/api/events/{event.id}/reviewers"


def _setup_link(text: str) -> str:
    match = re.search(r"https?://\S+/accept-invitation\?\S+", text)
    assert match, "invitation email carries no setup link"
    return match.group(0)


# =============================================================================
# Add (direct)
# =============================================================================

@pytest.mark.asyncio
async def test_direct_add_provisions_reviewer_and_invites(
    authed_client, db, test_event, sent_emails
):
    response = await authed_client.post(
        _url(test_event),
        json={"type": "direct", "email": "Rita@Example.com", "firstName": "Rita", "lastName": "Review"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["invitationSent"] is True
    assert data["message"] == "Reviewer added and invitation email sent"

    user = db.query(User).filter(User.email == "rita@example.com").one()
    assert str(user.id) == data["userId"]
    assert user.role == Role.REVIEWER.value
    assert user.organization_id is None
    assert user.email_verified is None

    db.refresh(test_event)
    assert test_event.settings["reviewerUserIds"] == [str(user.id)]

    assert len(sent_emails) == 1
    email = sent_emails[0]
    assert email.to_email == "rita@example.com"
    assert email.subject == "You've been invited to join Test Organization"
    assert "Ada Admin" in email.text

    query = parse_qs(urlparse(_setup_link(email.text)).query)
    assert query["email"] == ["rita@example.com"]
    stored = db.query(VerificationToken).filter(VerificationToken.identifier == "rita@example.com").one()
    assert stored.token == hash_verification_token(query["token"][0])

    audit = (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == "EventReviewer", AuditLog.entity_id == str(user.id))
        .one()
    )
    assert audit.action == "CREATE"
    assert audit.changes["invited"] is True
    assert "rita@example.com" not in str(audit.changes)


@pytest.mark.asyncio
async def test_adding_same_person_twice_is_rejected(authed_client, db, test_event, sent_emails):
    payload = {"type": "direct", "email": "rita@example.com", "firstName": "Rita", "lastName": "R"}
    first = await authed_client.post(_url(test_event), json=payload)
    assert first.status_code == 201

    second = await authed_client.post(_url(test_event), json=payload)

    assert second.status_code == 400
    assert second.json() == {"error": "This person is already a reviewer for this event"}
    db.refresh(test_event)
    assert len(test_event.settings["reviewerUserIds"]) == 1
    assert db.query(User).filter(User.email == "rita@example.com").count() == 1
    assert db.query(VerificationToken).count() == 1
    assert len(sent_emails) == 1


@pytest.mark.asyncio
async def test_existing_reviewer_added_without_invitation(
    authed_client, db, make_user, test_event, sent_emails
):
    existing = make_user(Role.REVIEWER, email="known@example.com")

    response = await authed_client.post(
        _url(test_event),
        json={"type": "direct", "email": "known@example.com", "firstName": "K", "lastName": "N"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["userId"] == str(existing.id)
    assert data["invitationSent"] is False
    assert data["message"] == "Reviewer added to event"
    assert sent_emails == []


@pytest.mark.asyncio
async def test_account_with_other_role_conflicts(authed_client, db, make_user, test_event):
    make_user(Role.ORGANIZER, email="boss@example.com")

    response = await authed_client.post(
        _url(test_event),
        json={"type": "direct", "email": "boss@example.com", "firstName": "B", "lastName": "O"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "User already exists with role ORGANIZER. "
        "Change their role in Settings > Users first."
    }
    db.refresh(test_event)
    assert test_event.settings["reviewerUserIds"] == []


@pytest.mark.asyncio
async def test_invitation_failure_keeps_roster_entry(authed_client, db, test_event):
    # No email provider configured in tests
    response = await authed_client.post(
        _url(test_event),
        json={"type": "direct", "email": "offline@example.com", "firstName": "O", "lastName": "L"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["invitationSent"] is False
    assert data["message"] == "Reviewer added to event"
    db.refresh(test_event)
    assert test_event.settings["reviewerUserIds"] == [data["userId"]]


@pytest.mark.asyncio
async def test_add_preserves_other_settings(authed_client, db, make_event, sent_emails):
    event = make_event(extra_settings={"theme": "dark"})

    response = await authed_client.post(
        _url(event),
        json={"type": "direct", "email": "t@example.com", "firstName": "T", "lastName": "H"},
    )

    assert response.status_code == 201
    db.refresh(event)
    assert event.settings["theme"] == "dark"
    assert event.settings["allowAbstractSubmissions"] is True


@pytest.mark.asyncio
async def test_add_rejects_unknown_type(authed_client, test_event):
    response = await authed_client.post(_url(test_event), json={"type": "bulk"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input"


# =============================================================================
# Add (from speaker)
# =============================================================================

@pytest.mark.asyncio
async def test_speaker_add_provisions_and_links(
    authed_client, db, test_event, make_speaker, sent_emails
):
    speaker = make_speaker(test_event, email="spk@example.com", first_name="Sol", last_name="Pk")

    response = await authed_client.post(
        _url(test_event), json={"type": "speaker", "speakerId": str(speaker.id)}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["invitationSent"] is True
    db.refresh(speaker)
    assert str(speaker.user_id) == data["userId"]
    assert sent_emails[0].to_email == "spk@example.com"


@pytest.mark.asyncio
async def test_speaker_with_linked_account_is_added_directly(
    authed_client, db, make_user, test_event, make_speaker, sent_emails
):
    submitter = make_user(Role.SUBMITTER)
    speaker = make_speaker(test_event, user=submitter)

    response = await authed_client.post(
        _url(test_event), json={"type": "speaker", "speakerId": str(speaker.id)}
    )

    assert response.status_code == 201
    assert response.json()["userId"] == str(submitter.id)
    assert sent_emails == []


@pytest.mark.asyncio
async def test_speaker_from_other_event_not_found(authed_client, make_event, test_event, make_speaker):
    foreign = make_speaker(make_event())

    response = await authed_client.post(
        _url(test_event), json={"type": "speaker", "speakerId": str(foreign.id)}
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Speaker not found"}


# =============================================================================
# List
# =============================================================================

@pytest.mark.asyncio
async def test_list_projects_roster_and_available_speakers(
    authed_client, make_user, make_event, make_speaker
):
    linked_user = make_user(Role.REVIEWER, first_name="Lin", last_name="Ked")
    bare_user = make_user(Role.REVIEWER, first_name="Ba", last_name="Re", activated=False)
    event = make_event(
        reviewer_user_ids=[str(linked_user.id), str(bare_user.id), "not-a-uuid"]
    )
    linked_speaker = make_speaker(event, user=linked_user, first_name="Lin", last_name="Ked")
    free_speaker = make_speaker(event, first_name="Fr", last_name="Ee")

    response = await authed_client.get(_url(event))

    assert response.status_code == 200
    assert response.headers["cache-control"] == "private, max-age=0, stale-while-revalidate=30"
    data = response.json()

    reviewers = data["reviewers"]
    assert [r["userId"] for r in reviewers] == [str(linked_user.id), str(bare_user.id)]
    assert reviewers[0]["speakerId"] == str(linked_speaker.id)
    assert reviewers[0]["accountActive"] is True
    assert reviewers[1]["speakerId"] is None
    assert reviewers[1]["accountActive"] is False

    assert [s["id"] for s in data["availableSpeakers"]] == [str(free_speaker.id)]


@pytest.mark.asyncio
async def test_reviewer_cannot_manage_roster(client_for, make_user, make_event):
    reviewer = make_user(Role.REVIEWER)
    event = make_event(reviewer_user_ids=[str(reviewer.id)])

    listing = await client_for(reviewer).get(_url(event))
    assert listing.status_code == 403

    adding = await client_for(reviewer).post(
        _url(event),
        json={"type": "direct", "email": "x@example.com", "firstName": "X", "lastName": "Y"},
    )
    assert adding.status_code == 403


@pytest.mark.asyncio
async def test_roster_of_other_org_event_not_found(authed_client, make_event, other_org):
    event = make_event(org=other_org)

    response = await authed_client.get(_url(event))

    assert response.status_code == 404


# =============================================================================
# Remove
# =============================================================================

@pytest.mark.asyncio
async def test_remove_reviewer(authed_client, db, make_user, make_event):
    keep = make_user(Role.REVIEWER)
    drop = make_user(Role.REVIEWER)
    event = make_event(
        reviewer_user_ids=[str(keep.id), str(drop.id)], extra_settings={"theme": "dark"}
    )

    response = await authed_client.delete(f"{_url(event)}/{drop.id}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Reviewer removed from event"}
    db.refresh(event)
    assert event.settings["reviewerUserIds"] == [str(keep.id)]
    assert event.settings["theme"] == "dark"
    # The account itself is untouched
    assert db.get(User, drop.id) is not None


@pytest.mark.asyncio
async def test_remove_unknown_reviewer(authed_client, test_event, make_user):
    stranger = make_user(Role.REVIEWER)

    response = await authed_client.delete(f"{_url(test_event)}/{stranger.id}")

    assert response.status_code == 404
    assert response.json() == {"error": "Reviewer not found for this event"}
