import os

# Must be set before the app (and its cached settings / engine) are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RESEND_API_KEY"] = ""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from mentorhub import models  # noqa: F401
from mentorhub.database import Base, SessionLocal, engine, get_db
from mentorhub.main import app
from mentorhub.models import Booking, MentorProfile, PaymentStatus, SessionStatus, User, UserRole
from mentorhub.security import create_access_token
from mentorhub.utils.time_utils import utcnow

MENTOR_SERVICES = {
    "oneOnOneSession": {"name": "1:1 Session", "price": 500, "enabled": True, "duration": 60},
    "resumeReview": {"name": "Resume Review", "price": 300, "enabled": True, "duration": 30},
    "mockInterview": {"name": "Mock Interview", "price": 800, "enabled": False},
}


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username, roles=("student",), email=None, full_name=None):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            full_name=full_name,
            # Tests authenticate with tokens, never with the password
            hashed_password="not-a-real-hash",
        )
        for role in roles:
            user.roles.append(UserRole(role=role))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_mentor(db, make_user):
    def _make_mentor(username, services=None, full_name="Mentor Person"):
        user = make_user(username, roles=("mentor",), full_name=full_name)
        db.add(MentorProfile(
            id=user.id,
            full_name=full_name,
            username=username,
            headline="Senior engineer",
            expertise=["python", "career"],
            services=MENTOR_SERVICES if services is None else services,
        ))
        db.commit()
        db.refresh(user)
        return user

    return _make_mentor


@pytest.fixture
def mentor(make_mentor):
    return make_mentor("mentor_m", full_name="Maria Mentor")


@pytest.fixture
def student(make_user):
    return make_user("student_s", full_name="Sam Student")


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token({"sub": user.username})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def make_booking(db):
    """Inserts a booking row directly, bypassing booking rules and rate limits."""
    def _make_booking(
        mentor,
        student,
        session_time=None,
        duration=60,
        status=SessionStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        total_amount=500,
        **extra,
    ):
        session_time = session_time or (utcnow() + timedelta(days=3)).replace(microsecond=0)
        booking = Booking(
            student_id=student.id,
            mentor_id=mentor.id,
            session_time=session_time,
            scheduled_date=session_time.date(),
            scheduled_time=session_time.strftime("%H:%M"),
            duration=duration,
            session_type="oneOnOneSession",
            service_name="1:1 Session",
            message="Looking forward to it",
            total_amount=total_amount,
            status=status.value,
            payment_status=payment_status.value,
            **extra,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make_booking
