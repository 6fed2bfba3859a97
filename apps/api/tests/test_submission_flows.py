"""End-to-end flows across the public, review and roster surfaces."""

import re

import pytest

from app.db.enums import Role
from app.db.models import Abstract, Speaker, User, VerificationToken


@pytest.mark.asyncio
async def test_public_submission_to_review(client, client_for, admin_user, db, test_event, sent_emails):
    # Anonymous submission
    response = await client.post(
        f"/api/public/events/{test_event.slug}/abstracts",
        json={
            "firstName": "Ann",
            "lastName": "Lee",
            "email": "ann@example.com",
            "title": "Talk",
            "content": "abstract body text",
        },
    )
    assert response.status_code == 200
    assert "token" not in response.text.lower()

    speaker = (
        db.query(Speaker)
        .filter(Speaker.event_id == test_event.id, Speaker.email == "ann@example.com")
        .one()
    )
    abstract = db.query(Abstract).filter(Abstract.speaker_id == speaker.id).one()
    assert abstract.status == "SUBMITTED"
    assert re.fullmatch(r"[0-9a-f]{64}", abstract.management_token)
    assert abstract.management_token in sent_emails[0].text

    # Speaker opens the management link
    token_view = await client.get(f"/api/public/abstracts/{abstract.management_token}")
    assert token_view.status_code == 200
    assert token_view.json()["isEditable"] is True

    # Admin accepts
    review = await client_for(admin_user).put(
        f"/api/events/{test_event.id}/abstracts/{abstract.id}",
        json={"status": "ACCEPTED", "reviewScore": 85},
    )
    assert review.status_code == 200
    assert review.json()["reviewedAt"] is not None
    assert sent_emails[-1].subject == "Abstract Accepted! - Test Conference"
    assert sent_emails[-1].to_email == "ann@example.com"

    # The management link is now read-only
    token_view = await client.get(f"/api/public/abstracts/{abstract.management_token}")
    assert token_view.json()["isEditable"] is False
    assert token_view.json()["reviewScore"] == 85


@pytest.mark.asyncio
async def test_provision_reviewer_then_review_access(
    client, client_for, admin_user, db, test_event, make_speaker, make_abstract, sent_emails
):
    added = await client_for(admin_user).post(
        f"/api/events/{test_event.id}/reviewers",
        json={"type": "direct", "email": "ron@example.com", "firstName": "Ron", "lastName": "K"},
    )
    assert added.status_code == 201

    reviewer = db.query(User).filter(User.email == "ron@example.com").one()
    assert reviewer.role == Role.REVIEWER.value
    assert reviewer.organization_id is None
    assert db.query(VerificationToken).filter(VerificationToken.identifier == reviewer.email).count() == 1
    db.refresh(test_event)
    assert str(reviewer.id) in test_event.settings["reviewerUserIds"]

    link = re.search(r"token=([0-9a-f]+)", sent_emails[0].text)
    accepted = await client.post(
        "/api/auth/accept-invitation",
        json={"token": link.group(1), "email": "ron@example.com", "password": "reviewer-pass"},
    )
    assert accepted.status_code == 200

    db.refresh(reviewer)
    abstract = make_abstract(test_event, make_speaker(test_event))
    reviewer_client = client_for(reviewer)

    listing = await reviewer_client.get(f"/api/events/{test_event.id}/abstracts")
    assert [row["id"] for row in listing.json()] == [str(abstract.id)]

    attempt = await reviewer_client.put(
        f"/api/events/{test_event.id}/abstracts/{abstract.id}", json={"status": "ACCEPTED"}
    )
    assert attempt.status_code == 403


@pytest.mark.asyncio
async def test_organizer_email_cannot_be_added_as_reviewer(
    client_for, admin_user, make_user, db, test_event
):
    make_user(Role.ORGANIZER, email="org@example.com")
    before = dict(test_event.settings)

    response = await client_for(admin_user).post(
        f"/api/events/{test_event.id}/reviewers",
        json={"type": "direct", "email": "org@example.com", "firstName": "O", "lastName": "R"},
    )

    assert response.status_code == 400
    assert "ORGANIZER" in response.json()["error"]
    db.refresh(test_event)
    assert test_event.settings == before


@pytest.mark.asyncio
async def test_submitter_writes_on_foreign_abstract_leave_it_unchanged(
    client_for, make_user, db, test_event, make_speaker, make_abstract
):
    submitter = make_user(Role.SUBMITTER)
    make_speaker(test_event, user=submitter)
    foreign = make_abstract(test_event, make_speaker(test_event), title="Theirs", content="Body")
    submitter_client = client_for(submitter)
    url = f"/api/events/{test_event.id}/abstracts/{foreign.id}"

    update = await submitter_client.put(url, json={"title": "Mine now", "content": "Changed"})
    delete = await submitter_client.delete(url)

    assert update.status_code in (403, 404)
    assert delete.status_code in (403, 404)
    db.refresh(foreign)
    assert (foreign.title, foreign.content, foreign.status) == ("Theirs", "Body", "SUBMITTED")
