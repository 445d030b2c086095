"""
Web App - JSON API over the tutor pipeline.

Endpoints:
    GET  /health
    POST /api/uploads                   ingest a document's text
    POST /api/ask                       ask a question about your notes
    POST /api/quizzes                   generate an adaptive quiz
    POST /api/quizzes/{quiz_id}/submit  grade a quiz
    GET  /api/progress                  mastery per topic
    GET  /api/dashboard                 student dashboard

The caller is identified by the X-User-Id header; authentication itself
happens in front of this app.

Run with:
    python -m notes_tutor.interfaces.web_app
"""

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictInt

from notes_tutor import __version__
from notes_tutor.config import LOG_LEVEL, MAX_UPLOAD_CHARS, WEB_HOST, WEB_PORT
from notes_tutor.errors import (
    AlreadyCompleted,
    InsufficientContent,
    InvalidAnswerSet,
    InvalidResponse,
    NoContext,
    NotFound,
    ServiceUnavailable,
    TutorError,
)
from notes_tutor.pipeline import TutorPipeline

logger = logging.getLogger(__name__)

# Most specific first; QuizParseError is caught as InvalidResponse
ERROR_STATUS = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AlreadyCompleted, status.HTTP_409_CONFLICT),
    (InvalidAnswerSet, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NoContext, status.HTTP_400_BAD_REQUEST),
    (InsufficientContent, status.HTTP_400_BAD_REQUEST),
    (InvalidResponse, status.HTTP_502_BAD_GATEWAY),
    (ServiceUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: TutorError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# ── Request models ───────────────────────────────────────────────────────────


class UploadRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    text: str = Field(min_length=1, max_length=MAX_UPLOAD_CHARS)
    subject: str | None = None
    topic: str | None = None
    subtopic: str | None = None


class AskRequest(BaseModel):
    question: str = Field(min_length=1, max_length=2000)


class SubmitRequest(BaseModel):
    answers: list[StrictInt]


def current_owner(x_user_id: Annotated[str | None, Header()] = None) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    return x_user_id.strip()


Owner = Annotated[str, Depends(current_owner)]


def create_app(pipeline: TutorPipeline | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        pipeline: A ready pipeline (tests inject one with fake gateways);
            built from config when omitted
    """
    tutor = pipeline or TutorPipeline()
    app = FastAPI(title="Notes Tutor", version=__version__)

    @app.exception_handler(TutorError)
    async def tutor_error_handler(request: Request, exc: TutorError):
        code = status_for(exc)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content={"error": exc.kind, "detail": exc.user_message})

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    @app.post("/api/uploads", status_code=status.HTTP_201_CREATED)
    def create_upload(payload: UploadRequest, owner_id: Owner):
        result = tutor.ingest(
            owner_id,
            payload.text,
            payload.file_name,
            subject=payload.subject,
            topic=payload.topic,
            subtopic=payload.subtopic,
        )
        return asdict(result)

    @app.post("/api/ask")
    def ask(payload: AskRequest, owner_id: Owner):
        if not payload.question.strip():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Question must not be empty"
            )
        return asdict(tutor.ask(owner_id, payload.question))

    @app.post("/api/quizzes", status_code=status.HTTP_201_CREATED)
    def create_quiz(owner_id: Owner):
        return asdict(tutor.generate_quiz(owner_id))

    @app.post("/api/quizzes/{quiz_id}/submit")
    def submit_quiz(quiz_id: str, payload: SubmitRequest, owner_id: Owner):
        return asdict(tutor.submit_quiz(owner_id, quiz_id, payload.answers))

    @app.get("/api/progress")
    def progress(owner_id: Owner):
        return {"progress": tutor.progress(owner_id)}

    @app.get("/api/dashboard")
    def dashboard(owner_id: Owner):
        return tutor.dashboard(owner_id)

    return app


def main():
    import uvicorn
    from rich.logging import RichHandler

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
    )
    uvicorn.run(create_app(), host=WEB_HOST, port=WEB_PORT)


if __name__ == "__main__":
    main()
