"""Domain errors raised by the interview services."""
from __future__ import annotations

from typing import Optional


class InterviewError(Exception):
    """Base error carrying an HTTP status and a user-facing message."""

    status_code = 500
    public_message = "An error occurred while processing the interview."

    def __init__(self, detail: str = "", *, public_message: Optional[str] = None) -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail
        if public_message is not None:
            self.public_message = public_message


class InvalidTurnRequest(InterviewError):
    status_code = 400
    public_message = "A session id and a message are required."


class SessionNotFound(InterviewError):
    status_code = 404
    public_message = "Interview session not found."


class SessionNotActive(InterviewError):
    status_code = 400
    public_message = "The interview is not in progress."


class InvalidTransition(InterviewError):
    status_code = 400
    public_message = "The requested session status change is not allowed."


class StaleSessionError(InterviewError):
    status_code = 409
    public_message = "The session was updated by another request. Please retry."


class StorageFailure(InterviewError):
    public_message = "The interview store is unavailable. Please try again."


class MissingAudio(InterviewError):
    status_code = 400
    public_message = "No audio file was uploaded."


class TranscriptionFailed(InterviewError):
    public_message = "Failed to transcribe the audio."


class GenerationError(InterviewError):
    public_message = "Failed to generate the interviewer response."


class TurnFailed(InterviewError):
    public_message = "An error occurred while processing the message."


__all__ = [
    "GenerationError",
    "InterviewError",
    "InvalidTransition",
    "InvalidTurnRequest",
    "MissingAudio",
    "SessionNotActive",
    "SessionNotFound",
    "StaleSessionError",
    "StorageFailure",
    "TranscriptionFailed",
    "TurnFailed",
]
