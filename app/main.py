import logging
import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Imports de l'application
from app.core.config import settings
from app.db import base  # noqa: F401  (registers every model on Base.metadata)
from app.db.base_class import Base
from app.db import session as db_session
from app.api.v2.api import api_router

# --- Configuration du logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Sakubun API",
    openapi_url="/api/openapi.json",
)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value or value == "None":
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _build_cors_origins() -> list[str]:
    origins = {_sanitize_origin(o) for o in settings.BACKEND_CORS_ORIGINS}
    origins.add(_sanitize_origin(str(settings.FRONTEND_BASE_URL) if settings.FRONTEND_BASE_URL else None))

    additional = os.getenv("ADDITIONAL_CORS_ORIGINS")
    if additional:
        for origin in additional.split(","):
            origins.add(_sanitize_origin(origin))

    allow_origins = sorted({origin for origin in origins if origin})
    logger.info("CORS origins configurés: %s", allow_origins)
    return allow_origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=_build_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or out-of-range request bodies are answered with 400."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid body", "errors": jsonable_encoder(exc.errors())},
    )


app.include_router(api_router, prefix="/api")


@app.on_event("startup")
def startup():
    logger.info("Vérification et création des tables de la base de données...")
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("Les tables de la base de données sont prêtes.")


@app.get("/")
def read_root():
    return {"message": "Welcome to Sakubun API!"}
