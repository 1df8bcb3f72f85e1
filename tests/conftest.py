import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("LOG_TO_FILE", "false")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.constants import QuestionTypeEnum, RoleEnum
from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.crud.exam import exam as crud_exam
from app.crud.question import question as crud_question
from app.crud.user import user as crud_user
from app.schemas.exam import ExamCreate
from app.schemas.question import QuestionCreate
from app.schemas.user import User, UserContext
from app.utils import deps as deps_utils
import main

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"

T0 = datetime(2025, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable stand-in for deps.get_clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int = 0, minutes: int = 0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds, minutes=minutes)
        return self.now


@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    yield engine
    engine.dispose()
    if test_db_url.startswith("sqlite") and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(database_engine):
    Base.metadata.drop_all(bind=database_engine)
    Base.metadata.create_all(bind=database_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture(scope="function")
def client(db_session, clock):
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_clock] = lambda: clock
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session):
    def _user_factory(name="Test User", email=None, role=RoleEnum.USER):
        user_data = {
            "name": name,
            "email": email or f"user-{uuid.uuid4().hex[:8]}@test.com",
            "role": role.value,
        }
        return crud_user.create(db_session, obj_in=user_data)
    return _user_factory

@pytest.fixture
def student(user_factory):
    return user_factory(name="Ana Souza")

@pytest.fixture
def admin(user_factory):
    return user_factory(name="Admin", role=RoleEnum.ADMIN)

@pytest.fixture
def context_for():
    def _context_for(user):
        return UserContext(user=User.model_validate(user), role=RoleEnum(user.role))
    return _context_for

@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
def question_factory(db_session):
    def _question_factory(gabarito="A", question_type=QuestionTypeEnum.MULTIPLE_CHOICE, **kwargs):
        if question_type == QuestionTypeEnum.TRUE_FALSE:
            kwargs.setdefault("alternativas", None)
        else:
            kwargs.setdefault("alternativas", ["A", "B", "C", "D", "E"])
        question_in = QuestionCreate(question_type=question_type, gabarito=gabarito, **kwargs)
        return crud_question.create(db_session, obj_in=question_in)
    return _question_factory

@pytest.fixture
def exam_factory(db_session, question_factory):
    """Build an exam whose answer key is ``answer_key`` in order."""
    def _exam_factory(answer_key=("A", "B", "C", "D"), created_by=None, **kwargs):
        questions = [question_factory(gabarito=key) for key in answer_key]
        exam_in = ExamCreate(
            title=kwargs.pop("title", f"Simulado {uuid.uuid4().hex[:6]}"),
            question_ids=[q.id for q in questions],
            **kwargs
        )
        return crud_exam.create_with_questions(db_session, obj_in=exam_in, created_by=created_by)
    return _exam_factory
