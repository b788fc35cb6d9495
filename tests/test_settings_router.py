import pytest

from app.api.v2.endpoints import settings_router
from app.models.user.user_settings_model import JlptLevel, UserSettings
from app.schemas.user.user_settings_schema import UserSettingsUpdate


def test_default_level_is_n3(db_session, user):
    result = settings_router.read_settings(db=db_session, current_user=user)

    assert result.jlpt_level == JlptLevel.N3
    assert db_session.get(UserSettings, user.id) is None


def test_update_creates_then_changes_the_row(db_session, user):
    settings_router.update_settings(UserSettingsUpdate(jlpt_level="n5"), db=db_session, current_user=user)
    result = settings_router.update_settings(
        UserSettingsUpdate(jlpt_level="n1"), db=db_session, current_user=user
    )

    assert result.jlpt_level == JlptLevel.N1
    assert db_session.query(UserSettings).count() == 1
    assert settings_router.read_settings(db=db_session, current_user=user).jlpt_level == JlptLevel.N1


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        UserSettingsUpdate(jlpt_level="n6")
