"""
Test configuration and fixtures.

Provides:
- Database session with savepoint (rollback after each test)
- Factories for organizations, users, events, tracks, speakers, abstracts
- JWT-cookie clients per role, with the CSRF header set
- Outbound email capture
"""
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Generator

# Must be set before app settings are imported
os.environ["TESTING"] = "1"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RESEND_API_KEY"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from app.main import app
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.deps import COOKIE_NAME, get_db
from app.core.rate_limit import limiter
from app.core.security import create_session_token, generate_management_token
from app.db.enums import AbstractStatus, EventStatus, Role, SpeakerStatus
from app.db.models import Abstract, Event, Organization, Speaker, Track, User


# =============================================================================
# Database Fixtures (Savepoint pattern)
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def create_schema() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a database session with savepoint for test isolation.

    App code can call commit() freely: each commit only releases a
    SAVEPOINT inside the outer transaction, which is rolled back at the end.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = SessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    limiter.reset()
    yield


# =============================================================================
# Factories
# =============================================================================

def _unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """Create a test organization."""
    org = Organization(id=uuid.uuid4(), name="Test Organization", slug=_unique("test-org"))
    db.add(org)
    db.flush()
    return org


@pytest.fixture(scope="function")
def other_org(db: Session) -> Organization:
    org = Organization(id=uuid.uuid4(), name="Other Organization", slug=_unique("other-org"))
    db.add(org)
    db.flush()
    return org


@pytest.fixture(scope="function")
def make_user(db: Session, test_org: Organization):
    """Factory: make_user(Role.ADMIN), make_user(Role.REVIEWER, activated=False), ..."""

    def _make(
        role: Role,
        *,
        org: Organization | None = None,
        email: str | None = None,
        first_name: str = "Test",
        last_name: str = "User",
        activated: bool = True,
        password: str | None = None,
    ) -> User:
        from app.core.security import hash_password

        if org is None and role in (Role.SUPER_ADMIN, Role.ADMIN, Role.ORGANIZER):
            org = test_org
        user = User(
            id=uuid.uuid4(),
            email=email or f"{_unique(role.value.lower())}@test.com",
            first_name=first_name,
            last_name=last_name,
            role=role.value,
            organization_id=org.id if org else None,
            password_hash=hash_password(password) if password else "not-a-bcrypt-hash",
            email_verified=datetime.now(timezone.utc) if activated else None,
        )
        db.add(user)
        db.flush()
        return user

    return _make


@pytest.fixture(scope="function")
def super_admin(make_user) -> User:
    return make_user(Role.SUPER_ADMIN, first_name="Sam", last_name="Super")


@pytest.fixture(scope="function")
def admin_user(make_user) -> User:
    return make_user(Role.ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture(scope="function")
def organizer_user(make_user) -> User:
    return make_user(Role.ORGANIZER, first_name="Olga", last_name="Organizer")


@pytest.fixture(scope="function")
def make_event(db: Session, test_org: Organization):
    def _make(
        *,
        org: Organization | None = None,
        status: EventStatus = EventStatus.PUBLISHED,
        allow_submissions: bool = True,
        deadline: datetime | None = None,
        reviewer_user_ids: list[str] | None = None,
        extra_settings: dict | None = None,
    ) -> Event:
        settings = {
            "allowAbstractSubmissions": allow_submissions,
            "abstractDeadline": deadline.isoformat() if deadline else None,
            "reviewerUserIds": reviewer_user_ids or [],
            **(extra_settings or {}),
        }
        event = Event(
            id=uuid.uuid4(),
            organization_id=(org or test_org).id,
            name="Test Conference",
            slug=_unique("conf"),
            status=status.value,
            settings=settings,
        )
        db.add(event)
        db.flush()
        return event

    return _make


@pytest.fixture(scope="function")
def test_event(make_event) -> Event:
    """Published event, submissions open, deadline a week away."""
    return make_event(deadline=datetime.now(timezone.utc) + timedelta(days=7))


@pytest.fixture(scope="function")
def make_track(db: Session):
    def _make(event: Event, name: str = "Main Track", sort_order: int = 0) -> Track:
        track = Track(id=uuid.uuid4(), event_id=event.id, name=name, sort_order=sort_order)
        db.add(track)
        db.flush()
        return track

    return _make


@pytest.fixture(scope="function")
def make_speaker(db: Session):
    def _make(
        event: Event,
        *,
        email: str | None = None,
        first_name: str = "Sara",
        last_name: str = "Speaker",
        user: User | None = None,
        status: SpeakerStatus = SpeakerStatus.CONFIRMED,
    ) -> Speaker:
        speaker = Speaker(
            id=uuid.uuid4(),
            event_id=event.id,
            email=email or f"{_unique('speaker')}@test.com",
            first_name=first_name,
            last_name=last_name,
            user_id=user.id if user else None,
            status=status.value,
        )
        db.add(speaker)
        db.flush()
        return speaker

    return _make


@pytest.fixture(scope="function")
def make_abstract(db: Session):
    def _make(
        event: Event,
        speaker: Speaker,
        *,
        status: AbstractStatus = AbstractStatus.SUBMITTED,
        title: str = "Scaling Event Platforms",
        content: str = "A talk about scaling.",
        track: Track | None = None,
        with_token: bool = True,
        submitted_at: datetime | None = None,
    ) -> Abstract:
        abstract = Abstract(
            id=uuid.uuid4(),
            event_id=event.id,
            speaker_id=speaker.id,
            title=title,
            content=content,
            track_id=track.id if track else None,
            status=status.value,
            management_token=generate_management_token() if with_token else None,
            submitted_at=submitted_at
            if submitted_at is not None
            else (None if status == AbstractStatus.DRAFT else datetime.now(timezone.utc)),
        )
        db.add(abstract)
        db.flush()
        return abstract

    return _make


# =============================================================================
# Email capture
# =============================================================================

@dataclass
class SentEmail:
    to_email: str
    subject: str
    html: str
    text: str | None


@pytest.fixture(scope="function")
def sent_emails(monkeypatch) -> list[SentEmail]:
    """Replace the Resend sender; every send succeeds and is recorded."""
    from app.services import email_sender

    captured: list[SentEmail] = []

    async def fake_send_email(*, to_email, subject, html, text=None, idempotency_key=None):
        captured.append(SentEmail(to_email=to_email, subject=subject, html=html, text=text))
        return {"success": True, "message_id": f"msg-{len(captured)}"}

    monkeypatch.setattr(email_sender, "send_email", fake_send_email)
    return captured


# =============================================================================
# Client Fixtures
# =============================================================================

def _session_cookie(user: User) -> dict[str, str]:
    token = create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
    )
    return {COOKIE_NAME: token}


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client_for(db: Session):
    """
    Factory: client_for(user) -> AsyncClient carrying the user's session
    cookie and the CSRF header.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    clients: list[AsyncClient] = []

    def _make(user: User) -> AsyncClient:
        c = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=_session_cookie(user),
            headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
        )
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(client_for, admin_user: User) -> AsyncClient:
    """AsyncClient authenticated as an ADMIN of test_org."""
    return client_for(admin_user)
