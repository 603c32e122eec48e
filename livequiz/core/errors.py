"""Error taxonomy shared by the HTTP and WebSocket surfaces.

Every error is local to the caller that triggered it. They subclass
``HTTPException`` so services can raise them directly and FastAPI renders them
without extra plumbing; the ``code`` lets clients tell apart errors that share
a status (e.g. ``conflict`` vs ``invalid_transition``).
"""

from fastapi import HTTPException


class QuizError(HTTPException):
    status_code = 400
    code = "error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class InvalidTransition(QuizError):
    status_code = 409
    code = "invalid_transition"


class Forbidden(QuizError):
    status_code = 403
    code = "forbidden"


class NotFound(QuizError):
    status_code = 404
    code = "not_found"


class Conflict(QuizError):
    status_code = 409
    code = "conflict"


class ValidationError(QuizError):
    status_code = 400
    code = "validation_error"


class TooLate(QuizError):
    status_code = 410
    code = "too_late"


class Unauthorized(QuizError):
    status_code = 401
    code = "unauthorized"
