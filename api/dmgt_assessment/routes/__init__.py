from fastapi import FastAPI

from .files import router as files_router
from .questions import router as questions_router
from .responses import router as responses_router


def include_routers(app: FastAPI) -> None:
    app.include_router(questions_router, tags=["questions"])
    app.include_router(responses_router, tags=["responses"])
    app.include_router(files_router, tags=["files"])


__all__ = ["include_routers"]
