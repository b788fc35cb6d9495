"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("FRONTEND_BASE_URL", "http://localhost:3000")

from app.core.model_policy import GradeModels, ModelPolicy, TaskModels
from app.db import base  # noqa: F401  (registers every model)
from app.db.base_class import Base

from tests.utils import StubOpenAI, create_user


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def user(db_session):
    return create_user(db_session)


@pytest.fixture()
def model_policy() -> ModelPolicy:
    return ModelPolicy(
        generate=TaskModels("gen-primary", "gen-fallback"),
        autofill=TaskModels("fill-primary", "fill-fallback"),
        grade=GradeModels("grade-primary", "grade-fallback"),
        tts=TaskModels("tts-primary", "tts-primary"),
    )


@pytest.fixture()
def stub_openai() -> StubOpenAI:
    return StubOpenAI()
