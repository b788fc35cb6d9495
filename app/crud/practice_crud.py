# Fichier: app/crud/practice_crud.py
from __future__ import annotations

from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session

from app.models.practice.practice_attempt_model import PracticeAttempt, Verdict
from app.models.practice.practice_problem_model import PracticeProblem
from app.models.practice.practice_session_model import PracticeSession
from app.models.user.user_settings_model import JlptLevel


def create_session(
    db: Session,
    owner_id: int,
    list_id: str,
    *,
    problem_count: int,
    jlpt_level: JlptLevel,
    scenario_prompt: str | None = None,
) -> PracticeSession:
    session = PracticeSession(
        user_id=owner_id,
        list_id=list_id,
        problem_count=problem_count,
        jlpt_level=jlpt_level,
        scenario_prompt=scenario_prompt,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_session(db: Session, owner_id: int, session_id: str) -> PracticeSession | None:
    return (
        db.query(PracticeSession)
        .filter(PracticeSession.id == session_id, PracticeSession.user_id == owner_id)
        .first()
    )


def list_sessions(db: Session, owner_id: int, *, limit: int = 50) -> list[PracticeSession]:
    return (
        db.query(PracticeSession)
        .filter(PracticeSession.user_id == owner_id)
        .order_by(PracticeSession.created_at.desc())
        .limit(limit)
        .all()
    )


def create_problems(db: Session, rows: Sequence[dict[str, Any]]) -> list[PracticeProblem]:
    problems = [PracticeProblem(**row) for row in rows]
    db.add_all(problems)
    db.commit()
    return problems


def list_problems(db: Session, owner_id: int, session_id: str) -> list[PracticeProblem]:
    return (
        db.query(PracticeProblem)
        .filter(PracticeProblem.session_id == session_id, PracticeProblem.user_id == owner_id)
        .order_by(PracticeProblem.created_at.asc())
        .all()
    )


def get_problem(db: Session, owner_id: int, problem_id: str) -> PracticeProblem | None:
    return (
        db.query(PracticeProblem)
        .filter(PracticeProblem.id == problem_id, PracticeProblem.user_id == owner_id)
        .first()
    )


def create_attempt(
    db: Session,
    owner_id: int,
    problem_id: str,
    *,
    user_answer_ja: str,
    verdict: Verdict,
    feedback: str | None = None,
) -> PracticeAttempt:
    attempt = PracticeAttempt(
        user_id=owner_id,
        problem_id=problem_id,
        user_answer_ja=user_answer_ja,
        verdict=verdict,
        feedback=feedback,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    return attempt


def latest_attempts(
    db: Session, owner_id: int, problem_ids: Iterable[str]
) -> dict[str, PracticeAttempt]:
    """Map each problem id to its current (most recent) attempt."""

    ids = list(problem_ids)
    if not ids:
        return {}
    attempts = (
        db.query(PracticeAttempt)
        .filter(PracticeAttempt.problem_id.in_(ids), PracticeAttempt.user_id == owner_id)
        .order_by(PracticeAttempt.created_at.desc())
        .all()
    )
    latest: dict[str, PracticeAttempt] = {}
    for attempt in attempts:
        latest.setdefault(attempt.problem_id, attempt)
    return latest


def delete_attempts_for_session(db: Session, owner_id: int, session_id: str) -> int:
    problem_ids = [
        row.id
        for row in db.query(PracticeProblem.id).filter(
            PracticeProblem.session_id == session_id, PracticeProblem.user_id == owner_id
        )
    ]
    if not problem_ids:
        return 0
    deleted = (
        db.query(PracticeAttempt)
        .filter(PracticeAttempt.problem_id.in_(problem_ids), PracticeAttempt.user_id == owner_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return int(deleted or 0)
