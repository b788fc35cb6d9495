# Fichier: app/db/base_class.py
from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    """
    Base declarative class shared by every ORM model of the vocabulary and
    practice domain.
    """
