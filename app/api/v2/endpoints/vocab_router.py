# Fichier: app/api/v2/endpoints/vocab_router.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db
from app.crud import user_crud
from app.models.user.user_model import User
from app.schemas.practice.practice_schema import OkOut
from app.schemas.vocab import vocab_schema
from app.services.generation_support import GenerationError
from app.services.scenario_vocab_service import ScenarioVocabService
from app.services.vocab_service import VocabService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/scenario-create", response_model=vocab_schema.ScenarioCreateOut)
def create_scenario_vocab_list(
    payload: vocab_schema.ScenarioCreateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Generate a scenario list with its items, a session and its problems."""
    service = ScenarioVocabService(db=db, user=current_user)
    jlpt_level = user_crud.get_jlpt_level(db, current_user.id)
    try:
        result = service.create_scenario_vocab_list(
            scenario_prompt=payload.scenario_prompt,
            problem_count=payload.problem_count,
            jlpt_level=jlpt_level,
        )
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except Exception as exc:
        logger.exception("Scenario list creation failed for user %s", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc) or "Unknown error"
        ) from exc
    return vocab_schema.ScenarioCreateOut(list_id=result.list_id, session_id=result.session_id)


@router.post("/lists", response_model=vocab_schema.VocabListOut, status_code=status.HTTP_201_CREATED)
def create_vocab_list(
    payload: vocab_schema.VocabListCreateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return VocabService(db=db, user=current_user).create_list(payload.name)


@router.get("/lists", response_model=List[vocab_schema.VocabListOut])
def read_vocab_lists(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return VocabService(db=db, user=current_user).list_lists()


@router.post("/lists/delete", response_model=vocab_schema.BulkDeleteOut)
def delete_vocab_lists(
    payload: vocab_schema.BulkDeleteIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = VocabService(db=db, user=current_user).delete_lists(payload.ids)
    return vocab_schema.BulkDeleteOut(deleted=deleted)


@router.get("/lists/{list_id}/items", response_model=List[vocab_schema.VocabItemOut])
def read_vocab_items(
    list_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return VocabService(db=db, user=current_user).list_items(list_id)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.post(
    "/lists/{list_id}/items",
    response_model=vocab_schema.VocabItemOut,
    status_code=status.HTTP_201_CREATED,
)
def create_vocab_item(
    list_id: str,
    payload: vocab_schema.VocabItemCreateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return VocabService(db=db, user=current_user).add_item(
            list_id,
            ja_surface=payload.ja_surface,
            ko_meaning=payload.ko_meaning,
            ja_reading_hira=payload.ja_reading_hira,
            memo=payload.memo,
        )
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.post("/lists/{list_id}/items/delete", response_model=vocab_schema.BulkDeleteOut)
def delete_vocab_items(
    list_id: str,
    payload: vocab_schema.BulkDeleteIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        deleted = VocabService(db=db, user=current_user).delete_items(list_id, payload.ids)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return vocab_schema.BulkDeleteOut(deleted=deleted)


@router.patch("/items/{item_id}", response_model=vocab_schema.VocabItemOut)
def update_vocab_item(
    item_id: str,
    payload: vocab_schema.VocabItemUpdateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return VocabService(db=db, user=current_user).set_item_active(item_id, payload.is_active)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.post("/autofill", response_model=vocab_schema.AutofillOut, response_model_exclude_none=True)
def autofill_vocab_item(
    payload: vocab_schema.AutofillIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        result = VocabService(db=db, user=current_user).autofill(payload.ja_surface)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return vocab_schema.AutofillOut(**result)


@router.post("/lists/{list_id}/practice", response_model=vocab_schema.StartPracticeOut)
def start_practice(
    list_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Open a 10-problem session on the list and generate its problems."""
    try:
        session = VocabService(db=db, user=current_user).start_practice(list_id)
    except GenerationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return vocab_schema.StartPracticeOut(session_id=session.id)
