# Fichier: app/api/v2/endpoints/practice_router.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db
from app.models.user.user_model import User
from app.schemas.practice import practice_schema
from app.services.generation_support import GenerationError
from app.services.practice_generation_service import PracticeGenerationService
from app.services.practice_service import PracticeService

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_generation(db: Session, current_user: User, session_id: str, *, scenario: bool) -> None:
    service = PracticeGenerationService(db=db, user=current_user)
    try:
        if scenario:
            service.generate_scenario_problems_for_session(session_id)
        else:
            service.generate_problems_for_session(session_id)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except Exception as exc:
        logger.exception("Problem generation failed for session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc) or "Unknown error"
        ) from exc


@router.post("/generate", response_model=practice_schema.OkOut)
def generate_problems(
    payload: practice_schema.GenerateProblemsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _run_generation(db, current_user, str(payload.session_id), scenario=False)
    return practice_schema.OkOut()


@router.post("/generate-scenario", response_model=practice_schema.OkOut)
def generate_scenario_problems(
    payload: practice_schema.GenerateProblemsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _run_generation(db, current_user, str(payload.session_id), scenario=True)
    return practice_schema.OkOut()


@router.post("/grade", response_model=practice_schema.GradeOut)
def grade_problem(
    payload: practice_schema.GradeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        attempt = PracticeService(db=db, user=current_user).grade(
            str(payload.problem_id), payload.user_answer_ja, payload.verdict
        )
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return practice_schema.GradeOut(verdict=attempt.verdict)


@router.get("/sessions", response_model=List[practice_schema.PracticeSessionOut])
def read_practice_sessions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return PracticeService(db=db, user=current_user).list_sessions()


@router.get("/sessions/{session_id}", response_model=practice_schema.PracticeSessionDetailOut)
def read_practice_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        detail = PracticeService(db=db, user=current_user).get_session_detail(session_id)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return practice_schema.PracticeSessionDetailOut.model_validate(detail, from_attributes=True)


@router.post("/sessions/{session_id}/reset", response_model=practice_schema.ResetSessionOut)
def reset_practice_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        deleted = PracticeService(db=db, user=current_user).reset_session(session_id)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return practice_schema.ResetSessionOut(deleted_attempts=deleted)
