"""Error codes and the structured error every tool failure is reported as."""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    CORPUS_NOT_FOUND = "CORPUS_NOT_FOUND"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    SECTION_NOT_FOUND = "SECTION_NOT_FOUND"
    DOCUMENT_FETCH_FAILED = "DOCUMENT_FETCH_FAILED"
    INVALID_INPUT = "INVALID_INPUT"


class DocShelfError(Exception):
    """An anticipated failure with a code, a message and a hint for the caller.

    Raised anywhere below the tool layer and left alone until server.py
    renders it as an ``{"error": {...}}`` tool result. ``recoverable`` tells
    the agent whether the same call may succeed later.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def __repr__(self) -> str:
        return f"DocShelfError({self.code.value}, {self.message!r})"

    def to_dict(self) -> dict:
        detail = {
            "code": self.code.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "recoverable": self.recoverable,
        }
        return {"error": detail}


def document_not_found(document_id: int) -> DocShelfError:
    return DocShelfError(
        code=ErrorCode.DOCUMENT_NOT_FOUND,
        message=f"Document {document_id} not found.",
        suggestion="Call search_docs to find a valid document_id.",
        recoverable=False,
    )
