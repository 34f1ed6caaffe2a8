"""
Pytest configuration for the API tests.

The app runs against an in-memory SQLite database (one shared connection),
so the environment is set before anything under ``app`` is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-test-key"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-test-key"

from datetime import timedelta
from types import SimpleNamespace
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import uuid

import httpx
import pytest
from httpx import ASGITransport

from app.api.deps import get_auth_client
from app.core.cache import cache
from app.core.security import create_access_token
from app.db.base import Base
from app.db.base_class import utcnow
from app.db.session import SessionLocal, engine
from app.main import app
from app.models.admin_role import AdminRole
from app.models.content import ContentBlock, CourseSection, QuizQuestion
from app.models.course import Course, CourseLanguage
from app.models.enrollment import Enrollment
from app.models.enums import AdminRoleType, BlockType, EnrollmentStatus, Language, QuestionType
from app.models.plant import Plant
from app.models.profile import Profile
from app.models.progress import Progress
from app.services.course_catalog import ENGLISH_HAZMAT, SPANISH_HAZMAT
from app.services.supabase_auth import SupabaseAuthClient


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_state():
    Base.metadata.create_all(bind=engine)
    cache.clear()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()
    cache.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def auth_headers(profile: Profile, expires_delta: Optional[timedelta] = None) -> Dict[str, str]:
    token = create_access_token(profile.id, email=profile.email, expires_delta=expires_delta)
    return {"Authorization": f"Bearer {token}"}


class FakeAuthApi:
    """Stands in for a supabase client's ``auth`` (or ``auth.admin``) API and records every call."""

    def __init__(self, prefix: str, handlers: Dict[str, Callable], calls: List[Tuple[str, tuple]]):
        self._prefix = prefix
        self._handlers = handlers
        self._calls = calls

    def __getattr__(self, name):
        qualified = f"{self._prefix}{name}"

        def call(*args):
            self._calls.append((qualified, args))
            if qualified not in self._handlers:
                pytest.fail(f"unexpected auth provider call: {qualified}")
            return self._handlers[qualified](*args)
        return call


def use_auth_provider(**handlers: Callable) -> List[Tuple[str, tuple]]:
    """
    Route the app's auth client to fake supabase clients. Handlers are keyed
    by method name, admin methods as ``admin_<name>``; returns the recorded calls.
    """
    calls: List[Tuple[str, tuple]] = []
    named = {name.replace("admin_", "admin.", 1): handler for name, handler in handlers.items()}
    auth = FakeAuthApi("", named, calls)
    auth.__dict__["admin"] = FakeAuthApi("admin.", named, calls)
    client = SimpleNamespace(auth=auth)
    app.dependency_overrides[get_auth_client] = lambda: SupabaseAuthClient(client=client, service_client=client)
    return calls


def provider_user(user_id, email: str = "new@specchem.com"):
    return SimpleNamespace(id=str(user_id), email=email)


def provider_session(access_token: str = "access-123", refresh_token: str = "refresh-456"):
    return SimpleNamespace(access_token=access_token, refresh_token=refresh_token, expires_in=3600, token_type="bearer")


def make_plant(db, name: str = "Columbus, OH - Corporate", is_active: bool = True) -> Plant:
    plant = Plant(name=name, is_active=is_active)
    db.add(plant)
    db.commit()
    db.refresh(plant)
    return plant


def make_profile(
    db,
    plant: Plant,
    email: Optional[str] = None,
    first_name: str = "Dana",
    last_name: str = "Reyes",
    roles: Iterable = (),
    **extra,
) -> Profile:
    """``roles`` holds role types (org-wide) or ``(role, plant)`` pairs."""
    profile = Profile(
        id=uuid.uuid4(),
        plant_id=plant.id,
        first_name=first_name,
        last_name=last_name,
        email=email or f"{uuid.uuid4().hex[:8]}@specchem.com",
        **extra,
    )
    db.add(profile)
    db.flush()
    for role in roles:
        role_type, role_plant = role if isinstance(role, tuple) else (role, None)
        db.add(AdminRole(user_id=profile.id, role=role_type, plant_id=role_plant.id if role_plant else None))
    db.commit()
    db.refresh(profile)
    return profile


def make_course(
    db,
    slug: str = "forklift-safety",
    title: str = "Forklift Safety",
    course_id: Optional[uuid.UUID] = None,
    default_language: Language = Language.EN,
    languages: Iterable[Language] = (Language.EN,),
    is_published: bool = True,
) -> Course:
    course = Course(
        id=course_id or uuid.uuid4(),
        slug=slug,
        title=title,
        version="1.0",
        is_published=is_published,
        default_language=default_language,
        available_languages=[language.value for language in languages],
    )
    for language in languages:
        course.languages.append(CourseLanguage(
            language_code=language,
            is_primary=language == default_language,
            is_published=True,
        ))
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def make_hazmat_courses(db):
    english = make_course(
        db, slug=ENGLISH_HAZMAT.slug, title=ENGLISH_HAZMAT.title, course_id=ENGLISH_HAZMAT.id,
    )
    spanish = make_course(
        db, slug=SPANISH_HAZMAT.slug, title=SPANISH_HAZMAT.title, course_id=SPANISH_HAZMAT.id,
        default_language=Language.ES, languages=(Language.ES,),
    )
    return english, spanish


def enroll(
    db,
    profile: Profile,
    course: Course,
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED,
    percent: Optional[int] = 0,
    enrolled_at=None,
) -> Enrollment:
    """Enrollment plus its progress row; ``percent=None`` skips the progress row."""
    enrollment = Enrollment(
        user_id=profile.id,
        course_id=course.id,
        plant_id=profile.plant_id,
        status=status,
        enrolled_at=enrolled_at or utcnow(),
        completed_at=utcnow() if status == EnrollmentStatus.COMPLETED else None,
    )
    db.add(enrollment)
    if percent is not None:
        db.add(Progress(
            user_id=profile.id,
            course_id=course.id,
            plant_id=profile.plant_id,
            progress_percent=percent,
            current_section="introduction",
        ))
    db.commit()
    db.refresh(enrollment)
    return enrollment


def make_section(
    db,
    course: Course,
    section_key: str = "introduction",
    title: str = "Introduction",
    order_index: int = 0,
    is_published: bool = True,
    questions: Iterable[dict] = (),
) -> CourseSection:
    section = CourseSection(
        course_id=course.id,
        section_key=section_key,
        title=title,
        order_index=order_index,
        is_published=is_published,
    )
    section.content_blocks.append(ContentBlock(
        block_type=BlockType.TEXT,
        order_index=1,
        content={"text": f"{title} body"},
    ))
    section.content_blocks.append(ContentBlock(
        block_type=BlockType.HERO,
        order_index=0,
        content={"title": title},
        block_metadata={"variant": "wide"},
    ))
    for index, question in enumerate(questions):
        section.quiz_questions.append(QuizQuestion(
            question_key=question.get("question_key", f"q{index + 1}"),
            question_type=question.get("question_type", QuestionType.MULTIPLE_CHOICE),
            question_text=question.get("question_text", f"Question {index + 1}?"),
            options=question.get("options", ["A", "B", "C"]),
            correct_answer=question["correct_answer"],
            explanation=question.get("explanation"),
            order_index=question.get("order_index", index),
        ))
    db.add(section)
    db.commit()
    db.refresh(section)
    return section


@pytest.fixture
def plant(db):
    return make_plant(db)


@pytest.fixture
def other_plant(db):
    return make_plant(db, name="Atlanta, GA")


@pytest.fixture
def learner(db, plant):
    return make_profile(db, plant, email="learner@specchem.com", first_name="Lee", last_name="Learner")


@pytest.fixture
def hr_admin(db, plant):
    return make_profile(
        db, plant, email="hr@specchem.com", first_name="Harper", last_name="Admin",
        roles=[AdminRoleType.HR_ADMIN],
    )


@pytest.fixture
def dev_admin(db, plant):
    return make_profile(
        db, plant, email="dev@specchem.com", first_name="Devon", last_name="Admin",
        roles=[AdminRoleType.DEV_ADMIN],
    )
