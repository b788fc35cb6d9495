# Fichier: app/api/v2/api.py
from fastapi import APIRouter
from .endpoints import (
    practice_router,
    settings_router,
    vocab_router,
)

api_router = APIRouter()

api_router.include_router(vocab_router.router, prefix="/vocab", tags=["Vocab"])
api_router.include_router(practice_router.router, prefix="/practice", tags=["Practice"])
api_router.include_router(settings_router.router, prefix="/settings", tags=["Settings"])
