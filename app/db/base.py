"""Déclare l'ensemble des modèles SQLAlchemy pour ``create_all`` et la configuration des mappers."""

from app.db.base_class import Base

# Utilisateurs
from app.models.user.user_model import User
from app.models.user.user_settings_model import UserSettings

# Vocabulaire
from app.models.vocab.vocab_list_model import VocabList
from app.models.vocab.vocab_item_model import VocabItem

# Entraînement
from app.models.practice.practice_session_model import PracticeSession
from app.models.practice.practice_problem_model import PracticeProblem
from app.models.practice.practice_attempt_model import PracticeAttempt

__all__ = (
    "Base",
    "User",
    "UserSettings",
    "VocabList",
    "VocabItem",
    "PracticeSession",
    "PracticeProblem",
    "PracticeAttempt",
)
