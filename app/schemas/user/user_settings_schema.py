from pydantic import BaseModel, ConfigDict

from app.models.user.user_settings_model import JlptLevel


class UserSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    jlpt_level: JlptLevel


class UserSettingsUpdate(BaseModel):
    jlpt_level: JlptLevel
