# Fichier: app/crud/user_crud.py

from sqlalchemy.orm import Session
from app.models.user.user_settings_model import DEFAULT_JLPT_LEVEL, JlptLevel, UserSettings

def get_jlpt_level(db: Session, user_id: int) -> JlptLevel:
    """Return the user's JLPT level, ``n3`` when no settings row exists yet."""
    row = db.get(UserSettings, user_id)
    return row.jlpt_level if row else DEFAULT_JLPT_LEVEL

def update_jlpt_level(db: Session, user_id: int, jlpt_level: JlptLevel) -> UserSettings:
    row = db.get(UserSettings, user_id)
    if row is None:
        row = UserSettings(user_id=user_id, jlpt_level=jlpt_level)
        db.add(row)
    else:
        row.jlpt_level = jlpt_level
    db.commit()
    db.refresh(row)
    return row
