# Fichier: app/api/v2/endpoints/settings_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v2.dependencies import get_current_user, get_db
from app.crud import user_crud
from app.models.user.user_model import User
from app.schemas.user.user_settings_schema import UserSettingsOut, UserSettingsUpdate

router = APIRouter()


@router.get("", response_model=UserSettingsOut)
def read_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserSettingsOut(jlpt_level=user_crud.get_jlpt_level(db, current_user.id))


@router.put("", response_model=UserSettingsOut)
def update_settings(
    payload: UserSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = user_crud.update_jlpt_level(db, current_user.id, payload.jlpt_level)
    return UserSettingsOut(jlpt_level=row.jlpt_level)
