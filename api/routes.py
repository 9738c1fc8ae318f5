"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
import uuid

from typing import Optional

from fastapi import APIRouter, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.schemas import (
    ErrorResp,
    InterviewerOut,
    MessageOut,
    MessageReq,
    MessageResp,
    SessionDetailResp,
    SessionOut,
    SessionReq,
    StartReq,
    StartResp,
    StatusResp,
    TranscribeResp,
)
from services.errors import InterviewError
from services.session_state import InterviewSession
from services.sessions import StartRequest, load_transcript, pause_session, resume_session, start_interview
from services.transcription import transcribe_audio
from services.turns import TurnRequest, submit_user_turn


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview")
transcribe_router = APIRouter(prefix="/api")


def _error(exc: InterviewError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Interview request failed: %s", exc.detail or exc.public_message)
    else:
        logger.info("Interview request rejected (%s): %s", exc.status_code, exc.detail)
    body = ErrorResp(error=exc.public_message, details=exc.detail or None)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def _session_out(session: InterviewSession) -> SessionOut:
    return SessionOut(
        id=session.id,
        user_id=session.user_id,
        job_type=session.job_type,
        industry=session.industry,
        difficulty=session.difficulty,
        status=session.status,
        turn_count=session.turn_count,
        max_turns=session.max_turns,
        current_interviewer_id=session.current_interviewer_id,
        timer_config=session.config.timer.model_dump(),
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.post("/start", response_model=StartResp, responses={500: {"model": ErrorResp}})
def start(req: StartReq):
    try:
        result = start_interview(StartRequest(**req.model_dump()))
    except InterviewError as exc:
        return _error(exc)

    if result.first_message is not None:
        first_message = MessageOut.from_stored(result.first_message)
    else:
        first_message = MessageOut(
            id=f"welcome-{uuid.uuid4().hex[:8]}",
            session_id=result.session.id,
            role="interviewer",
            interviewer_id=result.interviewer.id,
            content=result.opening_text,
            timestamp=result.session.created_at,
            latency_ms=result.latency_ms,
        )
    return StartResp(
        session=_session_out(result.session),
        first_message=first_message,
        interviewer=InterviewerOut(**result.interviewer.model_dump()),
        interviewer_names=result.interviewer_names,
    )


@router.post(
    "/message",
    response_model=MessageResp,
    responses={400: {"model": ErrorResp}, 404: {"model": ErrorResp}, 409: {"model": ErrorResp}, 500: {"model": ErrorResp}},
)
def message(req: MessageReq):
    try:
        result = submit_user_turn(TurnRequest(**req.model_dump()))
    except InterviewError as exc:
        return _error(exc)

    return MessageResp(
        user_message=MessageOut.from_stored(result.user_message),
        interviewer_response=(
            MessageOut.from_stored(result.interviewer_message) if result.interviewer_message else None
        ),
        interviewer=InterviewerOut(**result.next_persona.model_dump()) if result.next_persona else None,
        session_status=result.session_status,
        turn_count=result.turn_count,
        should_end=result.should_end,
        saved_only=req.timeout_save_only,
        total_latency_ms=result.total_latency_ms,
    )


@router.post("/pause", response_model=StatusResp, responses={400: {"model": ErrorResp}, 404: {"model": ErrorResp}})
def pause(req: SessionReq):
    try:
        session = pause_session(req.session_id)
    except InterviewError as exc:
        return _error(exc)
    return StatusResp(session=_session_out(session))


@router.post("/resume", response_model=StatusResp, responses={400: {"model": ErrorResp}, 404: {"model": ErrorResp}})
def resume(req: SessionReq):
    try:
        session = resume_session(req.session_id)
    except InterviewError as exc:
        return _error(exc)
    return StatusResp(session=_session_out(session))


@router.get("/{session_id}", response_model=SessionDetailResp, responses={404: {"model": ErrorResp}})
def detail(session_id: str):
    try:
        session, stored = load_transcript(session_id)
    except InterviewError as exc:
        return _error(exc)
    messages = [MessageOut.from_stored(msg) for msg in stored]
    return SessionDetailResp(session=_session_out(session), messages=messages)


@transcribe_router.post(
    "/transcribe",
    response_model=TranscribeResp,
    responses={400: {"model": ErrorResp}, 500: {"model": ErrorResp}},
)
def transcribe(audio: Optional[UploadFile] = File(default=None)):
    try:
        payload = audio.file.read() if audio is not None else None
        result = transcribe_audio(
            payload,
            filename=audio.filename if audio is not None else None,
            content_type=audio.content_type if audio is not None else None,
        )
    except InterviewError as exc:
        return _error(exc)
    return TranscribeResp(**result.model_dump())


def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in err["loc"][1:]) or "body" for err in exc.errors()})
    logger.info("Rejected malformed request to %s: %s", request.url.path, fields)
    body = ErrorResp(error="The request is malformed.", details="invalid fields: " + ", ".join(fields))
    return JSONResponse(status_code=400, content=body.model_dump())


def install_routes(app: FastAPI) -> None:
    """Mount the interview and transcription routes with the shared error envelope."""

    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.include_router(router)
    app.include_router(transcribe_router)
