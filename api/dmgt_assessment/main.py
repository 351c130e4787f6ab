import logging
import time
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .config import ALLOWED_ORIGINS, APP_NAME, APP_VERSION, AWS_REGION, ENVIRONMENT, UPLOADS_DIR
from .database import Base, SessionLocal, engine
from .question_loader import load_question_registry
from .routes import include_routers

logger = logging.getLogger(__name__)

app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
include_routers(app)

UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOADS_DIR)), name="uploads")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def run_migrations() -> None:
    Base.metadata.create_all(bind=engine)


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            logger.warning("[startup] database not ready, retrying in %.1fs", delay_seconds)
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    run_migrations()
    # Fail fast on a broken registry rather than on the first request.
    load_question_registry()


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "environment": ENVIRONMENT, "region": AWS_REGION, "version": APP_VERSION}
