from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class LapTimeFormatError(DomainException):
    """Raised when a lap-time string does not follow ``m:ss.cc``."""

    def __init__(self, text: object) -> None:
        super().__init__(
            status_code=422,
            title="Invalid lap time",
            detail=f"lap time {text!r} must look like m:ss.cc or ss.cc",
            code="invalid_lap_time",
        )


class InvalidInput(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            title="Invalid input",
            detail=detail,
            code="invalid_input",
        )


class InvalidLapTime(InvalidInput):
    """Raised when a millisecond value cannot be rendered as a lap time."""

    def __init__(self, value: object) -> None:
        super().__init__(
            f"lap time must be a non-negative number of milliseconds, got {value!r}"
        )


class NotFoundError(DomainException):
    def __init__(self, title: str, detail: str, code: str) -> None:
        super().__init__(status_code=404, title=title, detail=detail, code=code)


class TrackNotFound(NotFoundError):
    def __init__(self, track_id: str | None) -> None:
        super().__init__(
            title="Track not found",
            detail=f"track '{track_id}' not found",
            code="track_not_found",
        )


class UserNotFound(NotFoundError):
    def __init__(self, user_id: str | None) -> None:
        super().__init__(
            title="User not found",
            detail=f"user '{user_id}' not found",
            code="user_not_found",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
